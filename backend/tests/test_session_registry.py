"""Test session lookup and lifecycle."""
from datetime import datetime, timedelta
import pytest
from smart_attendance import db
from smart_attendance.models.attendance_session import SessionStatus
from smart_attendance.models.user import User, UserRole
from smart_attendance.utils.errors import (
    InvalidEvidence, InvalidStateTransition, NoActiveSession, SessionConflict, SessionNotFound
)
from conftest import ANCHOR, ANCHOR_IP, SSID

def test_activate_binds_network_and_geofence(active_session):
    assert active_session.status == SessionStatus.ACTIVE
    assert active_session.ssid == SSID
    assert active_session.gateway_ip == '192.168.43.1'
    assert active_session.anchor_subnet == '192.168.43'
    assert active_session.radius_meters == 15
    assert active_session.late_after - active_session.opened_at == timedelta(minutes=10)
    assert active_session.closes_at is None

def test_generated_ssid(registry, faculty):
    session = registry.open_session(faculty, 'CS201', 'WED-11:00')
    registry.activate(session, anchor_ip='10.0.4.2', latitude=ANCHOR[0], longitude=ANCHOR[1])

    assert session.ssid.startswith('ATTEND_ASHA_')
    assert session.radius_meters == 15

def test_find_active_by_network_name(registry, active_session):
    assert registry.find_active_by_network_name(SSID).id == active_session.id

    with pytest.raises(NoActiveSession) as exc:
        registry.find_active_by_network_name('ATTEND_ROOM2')
    assert exc.value.details['ssid'] == 'ATTEND_ROOM2'

def test_find_by_id_missing(registry):
    with pytest.raises(SessionNotFound):
        registry.find_by_id(404)

def test_only_pending_sessions_activate(registry, active_session):
    with pytest.raises(InvalidStateTransition):
        registry.activate(active_session, anchor_ip=ANCHOR_IP, latitude=ANCHOR[0], longitude=ANCHOR[1])

def test_one_active_session_per_owner(registry, faculty, active_session):
    session = registry.open_session(faculty, 'CS102', 'MON-11:00')

    with pytest.raises(SessionConflict) as exc:
        registry.activate(session, anchor_ip=ANCHOR_IP, latitude=ANCHOR[0], longitude=ANCHOR[1])

    assert exc.value.details['session_id'] == active_session.id
    assert session.status == SessionStatus.PENDING

def test_one_active_session_per_timeslot(registry, active_session):
    colleague = User(email='colleague@example.com', name='Vikram Rao', role=UserRole.FACULTY).save()
    session = registry.open_session(colleague, 'CS101', 'MON-09:00')

    with pytest.raises(SessionConflict):
        registry.activate(session, anchor_ip='10.1.1.2', latitude=ANCHOR[0], longitude=ANCHOR[1])

def test_ssid_unique_among_active_sessions(registry, active_session):
    colleague = User(email='colleague@example.com', name='Vikram Rao', role=UserRole.FACULTY).save()
    session = registry.open_session(colleague, 'MA101', 'MON-09:00')

    with pytest.raises(SessionConflict):
        registry.activate(session, anchor_ip='10.1.1.2', latitude=ANCHOR[0], longitude=ANCHOR[1], ssid=SSID)

def test_close_returns_summary(registry, active_session):
    summary = registry.close(active_session)

    assert active_session.status == SessionStatus.CLOSED
    assert summary['total'] == 0
    assert summary['present'] == 0
    assert summary['duration_minutes'] == 0

    with pytest.raises(InvalidStateTransition):
        registry.close(active_session)

def test_require_active_rejects_closed(registry, active_session):
    registry.close(active_session)

    with pytest.raises(NoActiveSession):
        registry.require_active(active_session.id)

def test_session_closes_automatically(registry, faculty):
    session = registry.open_session(faculty, 'CS301', 'THU-14:00')
    registry.activate(
        session, anchor_ip=ANCHOR_IP, latitude=ANCHOR[0], longitude=ANCHOR[1], duration_minutes=50
    )
    session.closes_at = datetime.utcnow() - timedelta(seconds=1)
    db.session.commit()

    assert registry.list_active() == []
    assert session.status == SessionStatus.CLOSED
    assert session.closed_at == session.closes_at

def test_open_requires_class_and_timeslot(registry, faculty):
    with pytest.raises(InvalidEvidence) as exc:
        registry.open_session(faculty, '', 'MON-09:00')

    assert exc.value.details['field'] == 'class_ref'
