"""Sequential attendance verification: network -> geofence -> face -> commit."""
import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from smart_attendance import db
from smart_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from smart_attendance.services.attempt import VerificationAttempt, VerificationState
from smart_attendance.services.attempt_store import create_attempt_store
from smart_attendance.services.face_match_service import FaceMatchCheck, create_face_matcher
from smart_attendance.services.geofence_service import GeofenceService
from smart_attendance.services.network_check import NetworkProximityCheck
from smart_attendance.services.notification_service import attendance_committed
from smart_attendance.services.session_registry import SessionRegistry
from smart_attendance.utils.errors import (
    AttemptAlreadyCommitted, AttemptNotFound, DuplicateAttendance,
    InvalidStateTransition, NoActiveSession, StepAlreadyComplete
)

logger = logging.getLogger(__name__)

# step name -> (result attribute, state it is accepted in, verified state, next pending state)
STEP_FLOW = {
    'network': ('network', VerificationState.NETWORK_PENDING,
                VerificationState.NETWORK_VERIFIED, VerificationState.LOCATION_PENDING),
    'location': ('location', VerificationState.LOCATION_PENDING,
                 VerificationState.LOCATION_VERIFIED, VerificationState.FACE_PENDING),
    'face': ('face', VerificationState.FACE_PENDING,
             VerificationState.FACE_VERIFIED, None),
}

class VerificationService:
    """
    Verification orchestrator for attendance check-in.

    Flow:
    1. Network proximity (SSID + subnet of the anchor hotspot)
    2. Geofence (haversine distance to the session anchor)
    3. Face match (external matcher verdict against the threshold)
    4. Commit (one AttendanceRecord per session and claimant)

    Rules:
    - Steps are accepted strictly in order; a verified step advances the
      attempt to the next pending state immediately.
    - A failed check leaves the attempt where it was so the claimant can retry.
    - Accepted evidence is never overwritten.
    - Check errors propagate unchanged; only the storage uniqueness violation
      is translated (to DuplicateAttendance).
    """

    def __init__(self, registry: SessionRegistry, store, face_check: FaceMatchCheck):
        self.registry = registry
        self.store = store
        self.face_check = face_check

    # =================== LIFECYCLE ===================

    def start(self, claimant_id: int, session_id: int) -> VerificationAttempt:
        """Begin a new attempt for an active session."""
        session = self.registry.require_active(session_id)

        existing = AttendanceRecord.query.filter_by(
            session_id=session.id,
            claimant_id=claimant_id
        ).first()

        if existing:
            raise AttemptAlreadyCommitted(session_id=session.id, record_id=existing.id)

        attempt = VerificationAttempt.new(claimant_id, session.id)
        attempt.state = VerificationState.NETWORK_PENDING
        self.store.save(attempt)

        logger.info("Attempt %s started: claimant=%s session=%s", attempt.attempt_id, claimant_id, session.id)
        return attempt

    def get_attempt(self, attempt_id: str, claimant_id: int) -> VerificationAttempt:
        """Current snapshot of the claimant's own attempt."""
        attempt = self.store.get(attempt_id)
        # Other claimants' attempts are reported as missing
        if attempt is None or attempt.claimant_id != claimant_id:
            raise AttemptNotFound(attempt_id=attempt_id)
        return attempt

    def cancel(self, attempt_id: str, claimant_id: int) -> VerificationAttempt:
        """Release a non-terminal attempt without side effects."""
        attempt = self.get_attempt(attempt_id, claimant_id)

        if attempt.is_terminal:
            raise InvalidStateTransition(
                f"Attempt is already {attempt.state.value}",
                state=attempt.state.value
            )

        attempt.state = VerificationState.CANCELLED
        self.store.delete(attempt_id)

        logger.info("Attempt %s cancelled", attempt_id)
        return attempt

    # =================== STEPS ===================

    def submit_network_evidence(self, attempt_id: str, claimant_id: int, evidence: Dict) -> VerificationAttempt:
        return self._run_step(
            'network', attempt_id, claimant_id,
            lambda session, attempt: NetworkProximityCheck.verify(session, evidence)
        )

    def submit_location_evidence(self, attempt_id: str, claimant_id: int, evidence: Dict) -> VerificationAttempt:
        return self._run_step(
            'location', attempt_id, claimant_id,
            lambda session, attempt: GeofenceService.verify(session, evidence)
        )

    def submit_face_evidence(self, attempt_id: str, claimant_id: int, evidence: Dict) -> VerificationAttempt:
        return self._run_step(
            'face', attempt_id, claimant_id,
            lambda session, attempt: self.face_check.verify(session, attempt.claimant_id, evidence)
        )

    def _run_step(self, step: str, attempt_id: str, claimant_id: int, check: Callable) -> VerificationAttempt:
        attribute, accepted_in, verified_state, next_state = STEP_FLOW[step]
        attempt = self.get_attempt(attempt_id, claimant_id)

        self._guard_step(attempt, step, attribute, accepted_in)
        session = self._active_session_for(attempt)

        try:
            result = check(session, attempt)
        except Exception as e:
            logger.info("Attempt %s %s step rejected: %s", attempt_id, step, getattr(e, 'kind', type(e).__name__))
            attempt.touch()
            self.store.save(attempt)
            raise

        setattr(attempt, attribute, result)
        attempt.state = verified_state
        if next_state is not None:
            attempt.state = next_state
        attempt.touch()
        self.store.save(attempt)

        logger.info("Attempt %s %s step verified -> %s", attempt_id, step, attempt.state.value)
        return attempt

    def _guard_step(self, attempt: VerificationAttempt, step: str, attribute: str,
                    accepted_in: VerificationState) -> None:
        if attempt.state == VerificationState.COMMITTED:
            raise AttemptAlreadyCommitted(session_id=attempt.session_id)

        if getattr(attempt, attribute) is not None:
            raise StepAlreadyComplete(
                f"The {step} step is already complete",
                step=step,
                state=attempt.state.value
            )

        if attempt.state != accepted_in:
            raise InvalidStateTransition(
                f"Cannot submit {step} evidence while {attempt.state.value}",
                state=attempt.state.value,
                expected=accepted_in.value
            )

    def _active_session_for(self, attempt: VerificationAttempt):
        try:
            return self.registry.require_active(attempt.session_id)
        except NoActiveSession:
            attempt.state = VerificationState.FAILED
            attempt.failure_reason = 'session_closed'
            attempt.touch()
            self.store.save(attempt)
            logger.info("Attempt %s failed: session %s no longer active", attempt.attempt_id, attempt.session_id)
            raise

    # =================== COMMIT ===================

    def commit(self, attempt_id: str, claimant_id: int) -> AttendanceRecord:
        """Persist the attendance record of a fully verified attempt."""
        attempt = self.get_attempt(attempt_id, claimant_id)

        if attempt.state == VerificationState.COMMITTED:
            raise DuplicateAttendance(session_id=attempt.session_id, record_id=attempt.record_id)

        if attempt.state != VerificationState.FACE_VERIFIED:
            raise InvalidStateTransition(
                f"Cannot commit while {attempt.state.value}",
                state=attempt.state.value,
                expected=VerificationState.FACE_VERIFIED.value
            )

        session = self._active_session_for(attempt)
        committed_at = datetime.utcnow()
        status = self.arrival_status(session, committed_at)

        record = AttendanceRecord(
            session_id=session.id,
            claimant_id=attempt.claimant_id,
            status=status,
            committed_at=committed_at,
            observed_ip=attempt.network.observed_ip,
            observed_ssid=attempt.network.observed_ssid,
            observed_mac=attempt.network.observed_mac,
            latitude=attempt.location.latitude,
            longitude=attempt.location.longitude,
            accuracy_meters=attempt.location.accuracy_meters,
            distance_meters=attempt.location.distance_meters,
            face_confidence=attempt.face.confidence,
            image_digest=attempt.face.image_digest
        )

        try:
            db.session.add(record)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            stored = self.store.get(attempt_id)
            if stored is None or stored.state != VerificationState.COMMITTED:
                attempt.state = VerificationState.FAILED
                attempt.failure_reason = 'duplicate_attendance'
                attempt.touch()
                self.store.save(attempt)
            logger.warning("Duplicate commit rejected: claimant=%s session=%s", attempt.claimant_id, session.id)
            raise DuplicateAttendance(session_id=session.id)

        attempt.state = VerificationState.COMMITTED
        attempt.record_id = record.id
        attempt.touch()
        self.store.save(attempt)

        logger.info("Attempt %s committed as %s (record %s)", attempt_id, status.value, record.id)
        attendance_committed.send(
            self,
            session_id=session.id,
            claimant_id=attempt.claimant_id,
            status=status.value,
            record_id=record.id
        )
        return record

    def verify_face_and_commit(self, attempt_id: str, claimant_id: int, evidence: Dict) -> AttendanceRecord:
        self.submit_face_evidence(attempt_id, claimant_id, evidence)
        return self.commit(attempt_id, claimant_id)

    @staticmethod
    def arrival_status(session, committed_at: datetime) -> AttendanceStatus:
        """Present until the session's lateness cutoff, late after it."""
        if session.late_after is not None and committed_at > session.late_after:
            return AttendanceStatus.LATE
        return AttendanceStatus.PRESENT

def get_verification_service() -> VerificationService:
    """The service bound to the current app."""
    return current_app.extensions['verification_service']

def init_verification(app, registry: Optional[SessionRegistry] = None) -> VerificationService:
    """Wire registry, attempt store and face matcher from app config."""
    registry = registry or SessionRegistry(
        default_radius=app.config.get('GEOFENCE_DEFAULT_RADIUS_METERS', 50),
        late_after_minutes=app.config.get('LATE_AFTER_MINUTES', 10)
    )
    service = VerificationService(
        registry=registry,
        store=create_attempt_store(app.config),
        face_check=FaceMatchCheck(create_face_matcher(app.config))
    )
    app.extensions['verification_service'] = service
    return service
