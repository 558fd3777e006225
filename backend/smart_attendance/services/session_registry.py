"""Session registry: lookup and lifecycle of attendance sessions."""
import logging
import time
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from smart_attendance import db
from smart_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from smart_attendance.models.attendance_session import AttendanceSession, SessionStatus, subnet_prefix
from smart_attendance.utils.errors import (
    InvalidStateTransition, NoActiveSession, SessionConflict, SessionNotFound
)
from smart_attendance.utils.validators import Validator

logger = logging.getLogger(__name__)

BASE36_DIGITS = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'

def _base36(number: int) -> str:
    digits = ''
    while number:
        number, remainder = divmod(number, 36)
        digits = BASE36_DIGITS[remainder] + digits
    return digits or '0'

class SessionRegistry:
    """Authoritative lookup of attendance sessions.

    The verification orchestrator only reads through this class; the owner
    operations (open, activate, close) serve the faculty endpoints and CLI.
    """

    def __init__(self, default_radius: float = 50, late_after_minutes: int = 10):
        self.default_radius = default_radius
        self.late_after_minutes = late_after_minutes

    # =================== LOOKUP ===================

    def _expire_if_due(self, session: AttendanceSession) -> AttendanceSession:
        """Apply the automatic close lazily."""
        if session.status == SessionStatus.ACTIVE and session.is_past_close():
            session.status = SessionStatus.CLOSED
            session.closed_at = session.closes_at
            db.session.commit()
            logger.info("Session %s closed automatically at %s", session.id, session.closes_at)
        return session

    def find_by_id(self, session_id: int) -> AttendanceSession:
        session = db.session.get(AttendanceSession, session_id)
        if session is None:
            raise SessionNotFound(session_id=session_id)
        return self._expire_if_due(session)

    def find_active_by_network_name(self, ssid: str) -> AttendanceSession:
        """Active session broadcasting ``ssid``, or raise NoActiveSession."""
        sessions = AttendanceSession.query.filter_by(
            ssid=ssid,
            status=SessionStatus.ACTIVE
        ).all()

        for session in sessions:
            if self._expire_if_due(session).is_active():
                return session

        raise NoActiveSession(ssid=ssid)

    def require_active(self, session_id: int) -> AttendanceSession:
        """Session by id, only while it accepts claims."""
        session = db.session.get(AttendanceSession, session_id)
        if session is None or not self._expire_if_due(session).is_active():
            raise NoActiveSession(session_id=session_id)
        return session

    def list_active(self) -> List[AttendanceSession]:
        sessions = AttendanceSession.query.filter_by(status=SessionStatus.ACTIVE) \
            .order_by(AttendanceSession.opened_at.desc()).all()
        return [s for s in sessions if self._expire_if_due(s).is_active()]

    # =================== OWNER OPERATIONS ===================

    def open_session(self, owner, class_ref: str, timeslot: str) -> AttendanceSession:
        """Create a pending session for a class meeting."""
        Validator.require_fields({'class_ref': class_ref, 'timeslot': timeslot}, ['class_ref', 'timeslot'])

        session = AttendanceSession(
            class_ref=class_ref.strip(),
            timeslot=timeslot.strip(),
            owner_id=owner.id,
            status=SessionStatus.PENDING
        )
        session.save()
        logger.info("Session %s opened by user %s for %s@%s", session.id, owner.id, class_ref, timeslot)
        return session

    def activate(
        self,
        session: AttendanceSession,
        anchor_ip: str,
        latitude: float,
        longitude: float,
        ssid: Optional[str] = None,
        bssid: Optional[str] = None,
        radius_meters: Optional[float] = None,
        late_after_minutes: Optional[int] = None,
        duration_minutes: Optional[int] = None
    ) -> AttendanceSession:
        """Configure hotspot and geofence and start accepting claims."""
        if session.status != SessionStatus.PENDING:
            raise InvalidStateTransition(
                f"Session is {session.status.value}; only pending sessions can be activated",
                state=session.status.value,
                expected=SessionStatus.PENDING.value
            )

        anchor_ip = Validator.ipv4(anchor_ip, 'anchor_ip')
        latitude = Validator.number(latitude, 'latitude', -90, 90)
        longitude = Validator.number(longitude, 'longitude', -180, 180)
        radius = Validator.number(
            radius_meters if radius_meters is not None else self.default_radius,
            'radius_meters', 1
        )
        late_minutes = int(late_after_minutes if late_after_minutes is not None else self.late_after_minutes)

        if not ssid:
            ssid = f"ATTEND_{session.owner.first_name.upper()}_{_base36(int(time.time() * 1000))}"

        self._check_conflicts(session, ssid)

        now = datetime.utcnow()
        session.ssid = ssid
        session.bssid = bssid
        session.anchor_ip = anchor_ip
        session.gateway_ip = f"{subnet_prefix(anchor_ip)}.1"
        session.anchor_latitude = latitude
        session.anchor_longitude = longitude
        session.radius_meters = radius
        session.opened_at = now
        session.late_after = now + timedelta(minutes=late_minutes)
        session.closes_at = now + timedelta(minutes=int(duration_minutes)) if duration_minutes else None
        session.status = SessionStatus.ACTIVE

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise SessionConflict(
                f"{session.class_ref} already has an active session for {session.timeslot}",
                class_ref=session.class_ref,
                timeslot=session.timeslot
            )

        logger.info("Session %s active on SSID %s (radius %sm)", session.id, ssid, radius)
        return session

    def _check_conflicts(self, session: AttendanceSession, ssid: str) -> None:
        active = AttendanceSession.query.filter(
            AttendanceSession.status == SessionStatus.ACTIVE,
            AttendanceSession.id != session.id
        ).all()

        for other in active:
            if not self._expire_if_due(other).is_active():
                continue
            if other.class_ref == session.class_ref and other.timeslot == session.timeslot:
                raise SessionConflict(
                    f"{session.class_ref} already has an active session for {session.timeslot}",
                    session_id=other.id
                )
            if other.owner_id == session.owner_id:
                raise SessionConflict(
                    "You already have an active attendance session",
                    session_id=other.id,
                    ssid=other.ssid
                )
            if other.ssid == ssid:
                raise SessionConflict(
                    f"SSID {ssid} is already used by another active session",
                    session_id=other.id
                )

    def close(self, session: AttendanceSession) -> Dict:
        """Stop accepting claims; returns a short summary."""
        if session.status == SessionStatus.CLOSED:
            raise InvalidStateTransition(
                "Session is already closed",
                state=session.status.value,
                expected=SessionStatus.ACTIVE.value
            )

        session.status = SessionStatus.CLOSED
        session.closed_at = datetime.utcnow()
        db.session.commit()

        summary = self.summarize(session)
        duration = None
        if session.opened_at:
            duration = round((session.closed_at - session.opened_at).total_seconds() / 60)
        summary['duration_minutes'] = duration

        logger.info("Session %s closed with %s records", session.id, summary['total'])
        return summary

    @staticmethod
    def summarize(session: AttendanceSession) -> Dict:
        """Committed record counts by status."""
        counts = {status.value: 0 for status in AttendanceStatus}
        for record in session.records:
            counts[record.status.value] += 1

        counts['total'] = sum(counts.values())
        return counts

    @staticmethod
    def records_for(session: AttendanceSession) -> List[AttendanceRecord]:
        return session.records.order_by(AttendanceRecord.committed_at.asc()).all()
