"""Attendance session: one open claim window for a class meeting."""
from datetime import datetime
from enum import Enum
from typing import Optional
from smart_attendance import db
from smart_attendance.models.base import BaseModel

class SessionStatus(Enum):
    """Session lifecycle states."""
    PENDING = 'pending'
    ACTIVE = 'active'
    CLOSED = 'closed'

def subnet_prefix(ip_address: Optional[str]) -> Optional[str]:
    """First three octets of a dotted IPv4 address ("10.0.4")."""
    if not ip_address:
        return None
    return '.'.join(ip_address.split('.')[:3])

class AttendanceSession(BaseModel):
    """Anchor network, anchor coordinate and timing for one class meeting."""
    
    __tablename__ = 'attendance_sessions'
    __table_args__ = (
        # At most one active session per (class, timeslot)
        db.Index(
            'uq_active_session_per_timeslot',
            'class_ref', 'timeslot',
            unique=True,
            sqlite_where=db.text("status = 'ACTIVE'"),
            postgresql_where=db.text("status = 'ACTIVE'")
        ),
    )
    
    class_ref = db.Column(db.String(120), nullable=False)
    timeslot = db.Column(db.String(60), nullable=False)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    
    # Anchor network descriptor
    ssid = db.Column(db.String(64), nullable=True, index=True)
    bssid = db.Column(db.String(32), nullable=True)
    anchor_ip = db.Column(db.String(15), nullable=True)
    gateway_ip = db.Column(db.String(15), nullable=True)
    
    # Geofence
    anchor_latitude = db.Column(db.Float, nullable=True)
    anchor_longitude = db.Column(db.Float, nullable=True)
    radius_meters = db.Column(db.Float, nullable=True)
    
    # Timing
    opened_at = db.Column(db.DateTime, nullable=True)
    late_after = db.Column(db.DateTime, nullable=True)
    closes_at = db.Column(db.DateTime, nullable=True)
    closed_at = db.Column(db.DateTime, nullable=True)
    
    status = db.Column(db.Enum(SessionStatus), nullable=False, default=SessionStatus.PENDING, index=True)
    
    # Relationships
    records = db.relationship('AttendanceRecord', backref='session', lazy='dynamic')
    
    @property
    def anchor_subnet(self) -> Optional[str]:
        return subnet_prefix(self.anchor_ip)
    
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE
    
    def is_past_close(self, now: datetime = None) -> bool:
        """Check if the automatic close time has passed."""
        now = now or datetime.utcnow()
        return self.closes_at is not None and now >= self.closes_at
    
    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'class_ref': self.class_ref,
            'timeslot': self.timeslot,
            'owner_id': self.owner_id,
            'status': self.status.value,
            'network': {
                'ssid': self.ssid,
                'bssid': self.bssid,
                'anchor_ip': self.anchor_ip,
                'gateway_ip': self.gateway_ip
            },
            'geofence': {
                'latitude': self.anchor_latitude,
                'longitude': self.anchor_longitude,
                'radius_meters': self.radius_meters
            },
            'opened_at': self.opened_at.isoformat() if self.opened_at else None,
            'late_after': self.late_after.isoformat() if self.late_after else None,
            'closes_at': self.closes_at.isoformat() if self.closes_at else None,
            'closed_at': self.closed_at.isoformat() if self.closed_at else None
        }
    
    def to_public_dict(self):
        """Fields a claimant may see (no anchor IP)."""
        return {
            'id': self.id,
            'class_ref': self.class_ref,
            'timeslot': self.timeslot,
            'ssid': self.ssid,
            'status': self.status.value,
            'opened_at': self.opened_at.isoformat() if self.opened_at else None,
            'late_after': self.late_after.isoformat() if self.late_after else None
        }
    
    def __repr__(self):
        return f'<AttendanceSession {self.id} {self.class_ref}@{self.timeslot}>'
