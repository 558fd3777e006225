"""Test the verification state machine and commit."""
from datetime import datetime, timedelta
import pytest
from smart_attendance import db
from smart_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from smart_attendance.services.attempt import VerificationState
from smart_attendance.services.notification_service import attendance_committed
from smart_attendance.utils.errors import (
    AttemptAlreadyCommitted, AttemptNotFound, DuplicateAttendance, FaceNotVerified,
    InvalidStateTransition, LocationUnavailable, MatcherError, NetworkMismatch, NoActiveSession,
    OutsideGeofence, StepAlreadyComplete
)
from conftest import face_evidence, location_evidence, network_evidence

def _face_verified_attempt(service, claimant, session):
    attempt = service.start(claimant.id, session.id)
    service.submit_network_evidence(attempt.attempt_id, claimant.id, network_evidence())
    service.submit_location_evidence(attempt.attempt_id, claimant.id, location_evidence(10))
    return service.submit_face_evidence(attempt.attempt_id, claimant.id, face_evidence(0.92))

def test_start_enters_network_pending(service, student, active_session):
    attempt = service.start(student.id, active_session.id)

    assert attempt.state == VerificationState.NETWORK_PENDING
    assert attempt.attempt_id.startswith('attempt_')
    assert service.get_attempt(attempt.attempt_id, student.id).state == VerificationState.NETWORK_PENDING

def test_start_requires_active_session(service, student, registry, faculty):
    pending = registry.open_session(faculty, 'CS102', 'TUE-10:00')

    with pytest.raises(NoActiveSession):
        service.start(student.id, pending.id)

def test_full_flow_commits_present(service, student, active_session):
    attempt = service.start(student.id, active_session.id)

    attempt = service.submit_network_evidence(attempt.attempt_id, student.id, network_evidence())
    assert attempt.state == VerificationState.LOCATION_PENDING

    attempt = service.submit_location_evidence(attempt.attempt_id, student.id, location_evidence(10))
    assert attempt.state == VerificationState.FACE_PENDING
    assert attempt.location.distance_meters == 10

    attempt = service.submit_face_evidence(attempt.attempt_id, student.id, face_evidence(0.92))
    assert attempt.state == VerificationState.FACE_VERIFIED

    record = service.commit(attempt.attempt_id, student.id)

    assert record.status == AttendanceStatus.PRESENT
    assert record.observed_ssid == 'ATTEND_ROOM1'
    assert record.distance_meters == 10
    assert record.face_confidence == 0.92
    committed = service.get_attempt(attempt.attempt_id, student.id)
    assert committed.state == VerificationState.COMMITTED
    assert committed.record_id == record.id

def test_commit_after_cutoff_is_late(service, student, active_session):
    active_session.late_after = datetime.utcnow() - timedelta(minutes=1)
    db.session.commit()

    attempt = _face_verified_attempt(service, student, active_session)
    record = service.commit(attempt.attempt_id, student.id)

    assert record.status == AttendanceStatus.LATE

def test_verify_face_and_commit(service, student, active_session):
    attempt = service.start(student.id, active_session.id)
    service.submit_network_evidence(attempt.attempt_id, student.id, network_evidence())
    service.submit_location_evidence(attempt.attempt_id, student.id, location_evidence(5))

    record = service.verify_face_and_commit(attempt.attempt_id, student.id, face_evidence(0.88))

    assert record.face_confidence == 0.88
    assert AttendanceRecord.query.count() == 1

def test_out_of_order_step_leaves_state(service, student, active_session):
    attempt = service.start(student.id, active_session.id)

    with pytest.raises(InvalidStateTransition) as exc:
        service.submit_location_evidence(attempt.attempt_id, student.id, location_evidence(10))

    assert exc.value.details['state'] == 'network_pending'
    assert service.get_attempt(attempt.attempt_id, student.id).state == VerificationState.NETWORK_PENDING

def test_commit_before_face_is_rejected(service, student, active_session):
    attempt = service.start(student.id, active_session.id)
    service.submit_network_evidence(attempt.attempt_id, student.id, network_evidence())

    with pytest.raises(InvalidStateTransition):
        service.commit(attempt.attempt_id, student.id)

    assert AttendanceRecord.query.count() == 0

def test_accepted_step_cannot_be_resubmitted(service, student, active_session):
    attempt = service.start(student.id, active_session.id)
    service.submit_network_evidence(attempt.attempt_id, student.id, network_evidence())

    with pytest.raises(StepAlreadyComplete):
        service.submit_network_evidence(
            attempt.attempt_id, student.id, network_evidence(ip_address='192.168.43.99')
        )

    kept = service.get_attempt(attempt.attempt_id, student.id)
    assert kept.network.observed_ip == '192.168.43.27'

def test_failed_check_allows_retry(service, student, active_session):
    attempt = service.start(student.id, active_session.id)

    with pytest.raises(NetworkMismatch):
        service.submit_network_evidence(attempt.attempt_id, student.id, network_evidence(ssid='ATTEND_ROOM2'))
    assert service.get_attempt(attempt.attempt_id, student.id).state == VerificationState.NETWORK_PENDING

    service.submit_network_evidence(attempt.attempt_id, student.id, network_evidence())

    with pytest.raises(OutsideGeofence):
        service.submit_location_evidence(attempt.attempt_id, student.id, location_evidence(20))
    assert service.get_attempt(attempt.attempt_id, student.id).state == VerificationState.LOCATION_PENDING

    service.submit_location_evidence(attempt.attempt_id, student.id, location_evidence(10))

    with pytest.raises(FaceNotVerified):
        service.submit_face_evidence(attempt.attempt_id, student.id, face_evidence(0.5))
    assert service.get_attempt(attempt.attempt_id, student.id).state == VerificationState.FACE_PENDING

def test_repeat_commit_is_duplicate(service, student, active_session):
    attempt = _face_verified_attempt(service, student, active_session)
    service.commit(attempt.attempt_id, student.id)

    with pytest.raises(DuplicateAttendance):
        service.commit(attempt.attempt_id, student.id)

    assert AttendanceRecord.query.count() == 1

def test_two_verified_attempts_commit_once(service, student, active_session):
    first = _face_verified_attempt(service, student, active_session)
    second = _face_verified_attempt(service, student, active_session)

    service.commit(first.attempt_id, student.id)
    with pytest.raises(DuplicateAttendance):
        service.commit(second.attempt_id, student.id)

    assert AttendanceRecord.query.filter_by(claimant_id=student.id).count() == 1
    loser = service.get_attempt(second.attempt_id, student.id)
    assert loser.state == VerificationState.FAILED
    assert loser.failure_reason == 'duplicate_attendance'

def test_start_after_commit_is_rejected(service, student, active_session):
    attempt = _face_verified_attempt(service, student, active_session)
    record = service.commit(attempt.attempt_id, student.id)

    with pytest.raises(AttemptAlreadyCommitted) as exc:
        service.start(student.id, active_session.id)

    assert exc.value.details['record_id'] == record.id

def test_other_claimant_cannot_see_attempt(service, student, other_student, active_session):
    attempt = service.start(student.id, active_session.id)

    with pytest.raises(AttemptNotFound):
        service.submit_network_evidence(attempt.attempt_id, other_student.id, network_evidence())

def test_cancel(service, student, active_session):
    attempt = service.start(student.id, active_session.id)

    cancelled = service.cancel(attempt.attempt_id, student.id)

    assert cancelled.state == VerificationState.CANCELLED
    with pytest.raises(AttemptNotFound):
        service.get_attempt(attempt.attempt_id, student.id)

def test_closed_session_fails_attempt(service, registry, student, active_session):
    attempt = service.start(student.id, active_session.id)
    registry.close(active_session)

    with pytest.raises(NoActiveSession):
        service.submit_network_evidence(attempt.attempt_id, student.id, network_evidence())

    failed = service.get_attempt(attempt.attempt_id, student.id)
    assert failed.state == VerificationState.FAILED
    assert failed.failure_reason == 'session_closed'

    with pytest.raises(InvalidStateTransition):
        service.cancel(attempt.attempt_id, student.id)

def test_commit_sends_signal(service, student, active_session):
    received = []

    def receiver(sender, **kwargs):
        received.append(kwargs)

    attendance_committed.connect(receiver)
    try:
        attempt = _face_verified_attempt(service, student, active_session)
        record = service.commit(attempt.attempt_id, student.id)
    finally:
        attendance_committed.disconnect(receiver)

    assert received == [{
        'session_id': active_session.id,
        'claimant_id': student.id,
        'status': 'present',
        'record_id': record.id
    }]

def test_location_unavailable_allows_retry(service, student, active_session):
    attempt = service.start(student.id, active_session.id)
    service.submit_network_evidence(attempt.attempt_id, student.id, network_evidence())

    with pytest.raises(LocationUnavailable):
        service.submit_location_evidence(attempt.attempt_id, student.id, {'error': 'permission_denied'})
    assert service.get_attempt(attempt.attempt_id, student.id).state == VerificationState.LOCATION_PENDING

    attempt = service.submit_location_evidence(attempt.attempt_id, student.id, location_evidence(10))
    assert attempt.state == VerificationState.FACE_PENDING

def test_matcher_error_allows_retry(service, student, active_session):
    attempt = service.start(student.id, active_session.id)
    service.submit_network_evidence(attempt.attempt_id, student.id, network_evidence())
    service.submit_location_evidence(attempt.attempt_id, student.id, location_evidence(10))

    with pytest.raises(MatcherError) as exc:
        service.submit_face_evidence(attempt.attempt_id, student.id, face_evidence(face_detected=False))
    assert exc.value.details['reason'] == 'no_face_detected'

    pending = service.get_attempt(attempt.attempt_id, student.id)
    assert pending.state == VerificationState.FACE_PENDING
    assert pending.face is None

    attempt = service.submit_face_evidence(attempt.attempt_id, student.id, face_evidence(0.92))
    assert attempt.state == VerificationState.FACE_VERIFIED

def test_rejected_step_refreshes_idle_window(service, student, active_session):
    attempt = service.start(student.id, active_session.id)
    service.store._attempts[attempt.attempt_id].last_touched = datetime.utcnow() - timedelta(seconds=100)

    with pytest.raises(NetworkMismatch):
        service.submit_network_evidence(attempt.attempt_id, student.id, network_evidence(ssid='ATTEND_ROOM2'))

    kept = service.get_attempt(attempt.attempt_id, student.id)
    assert datetime.utcnow() - kept.last_touched < timedelta(seconds=10)
    assert kept.state == VerificationState.NETWORK_PENDING

def test_concurrent_commit_keeps_committed_state(service, student, active_session, monkeypatch):
    attempt = _face_verified_attempt(service, student, active_session)
    stale = service.get_attempt(attempt.attempt_id, student.id)
    record = service.commit(attempt.attempt_id, student.id)

    # Second request read the attempt before the first one committed
    monkeypatch.setattr(service, 'get_attempt', lambda attempt_id, claimant_id: stale)
    with pytest.raises(DuplicateAttendance):
        service.commit(attempt.attempt_id, student.id)

    kept = service.store.get(attempt.attempt_id)
    assert kept.state == VerificationState.COMMITTED
    assert kept.record_id == record.id
    assert kept.failure_reason is None
    assert AttendanceRecord.query.count() == 1
