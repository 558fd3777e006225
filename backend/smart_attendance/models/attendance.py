"""Attendance record: the durable outcome of a verified attempt."""
from datetime import datetime
from enum import Enum
from smart_attendance import db
from smart_attendance.models.base import BaseModel

class AttendanceStatus(Enum):
    """Attendance outcome."""
    PRESENT = 'present'
    LATE = 'late'
    ABSENT = 'absent'

class AttendanceRecord(BaseModel):
    """Attendance record model."""
    
    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'claimant_id', name='uq_attendance_session_claimant'),
    )
    
    session_id = db.Column(db.Integer, db.ForeignKey('attendance_sessions.id'), nullable=False, index=True)
    claimant_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    committed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    
    # Evidence summary (the captured image itself is never stored)
    observed_ip = db.Column(db.String(15), nullable=True)
    observed_ssid = db.Column(db.String(64), nullable=True)
    observed_mac = db.Column(db.String(32), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    accuracy_meters = db.Column(db.Float, nullable=True)
    distance_meters = db.Column(db.Integer, nullable=True)
    face_confidence = db.Column(db.Float, nullable=True)
    image_digest = db.Column(db.String(64), nullable=True)
    
    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'session_id': self.session_id,
            'claimant_id': self.claimant_id,
            'status': self.status.value,
            'committed_at': self.committed_at.isoformat(),
            'evidence': {
                'network': {
                    'ip_address': self.observed_ip,
                    'ssid': self.observed_ssid,
                    'mac_address': self.observed_mac
                },
                'location': {
                    'latitude': self.latitude,
                    'longitude': self.longitude,
                    'accuracy_meters': self.accuracy_meters,
                    'distance_meters': self.distance_meters
                },
                'face': {
                    'confidence': self.face_confidence,
                    'image_digest': self.image_digest
                }
            }
        }
    
    def __repr__(self):
        return f'<AttendanceRecord {self.session_id}-{self.claimant_id}>'
