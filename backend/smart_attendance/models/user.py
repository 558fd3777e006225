"""User identity model for authorization."""
from enum import Enum
from smart_attendance import db
from smart_attendance.models.base import BaseModel

class UserRole(Enum):
    """User roles enumeration."""
    STUDENT = 'student'
    FACULTY = 'faculty'
    ADMIN = 'admin'

class User(BaseModel):
    """Authenticated principal: claimant (student) or session owner (faculty).

    Credentials live with the auth collaborator; this table only maps the JWT
    identity to a name and a role.
    """
    
    __tablename__ = 'users'
    
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    roll_number = db.Column(db.String(50), unique=True, nullable=True, index=True)
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    
    # Relationships
    owned_sessions = db.relationship('AttendanceSession', backref='owner', lazy='dynamic')
    attendance_records = db.relationship('AttendanceRecord', backref='claimant', lazy='dynamic')
    
    def is_faculty(self) -> bool:
        """Faculty or admin may own sessions."""
        return self.role in [UserRole.FACULTY, UserRole.ADMIN]
    
    def is_student(self) -> bool:
        """Check if user is a student."""
        return self.role == UserRole.STUDENT
    
    @property
    def first_name(self) -> str:
        return self.name.split(' ')[0] if self.name else ''
    
    def __repr__(self) -> str:
        return f'<User {self.email}>'
