"""Sessions API: owner-facing session lifecycle endpoints."""
from flask import Blueprint, request
from smart_attendance.models.attendance_session import AttendanceSession, SessionStatus
from smart_attendance.models.user import UserRole
from smart_attendance.services.verification_service import get_verification_service
from smart_attendance.utils.decorators import faculty_required, get_current_user
from smart_attendance.utils.helpers import error_response, success_response
from smart_attendance.utils.validators import Validator

sessions_bp = Blueprint('sessions', __name__)

def _owned_session(session_id: int):
    """Session if the caller owns it (or is admin); otherwise an error response."""
    session = get_verification_service().registry.find_by_id(session_id)
    user = get_current_user()

    if session.owner_id != user.id and user.role != UserRole.ADMIN:
        return None, error_response("You can only manage your own sessions", 403)

    return session, None

@sessions_bp.route('/', methods=['GET'])
@faculty_required
def list_sessions():
    """Sessions owned by the caller, newest first."""
    user = get_current_user()
    query = AttendanceSession.query.filter_by(owner_id=user.id)

    status = request.args.get('status')
    if status:
        try:
            query = query.filter_by(status=SessionStatus(status))
        except ValueError:
            return error_response(f"Unknown status: {status}", 400)

    sessions = query.order_by(AttendanceSession.created_at.desc()).all()
    return success_response(
        data={
            'count': len(sessions),
            'sessions': [s.to_dict() for s in sessions]
        }
    )

@sessions_bp.route('/', methods=['POST'])
@faculty_required
def open_session():
    """Create a pending session for a class meeting."""
    data = Validator.json_body(request.get_json(silent=True))
    Validator.require_fields(data, ['class_ref', 'timeslot'])

    session = get_verification_service().registry.open_session(
        get_current_user(), data['class_ref'], data['timeslot']
    )
    return success_response(
        data={'session': session.to_dict()},
        message="Session created",
        status_code=201
    )

@sessions_bp.route('/<int:session_id>/activate', methods=['POST'])
@faculty_required
def activate_session(session_id: int):
    """Bind hotspot and geofence; the session starts accepting claims."""
    session, denied = _owned_session(session_id)
    if denied:
        return denied

    data = Validator.json_body(request.get_json(silent=True))
    Validator.require_fields(data, ['anchor_ip', 'latitude', 'longitude'])

    session = get_verification_service().registry.activate(
        session,
        anchor_ip=data['anchor_ip'],
        latitude=data['latitude'],
        longitude=data['longitude'],
        ssid=data.get('ssid'),
        bssid=data.get('bssid'),
        radius_meters=data.get('radius_meters'),
        late_after_minutes=data.get('late_after_minutes'),
        duration_minutes=data.get('duration_minutes')
    )
    return success_response(
        data={'session': session.to_dict()},
        message=f"Session active on {session.ssid}"
    )

@sessions_bp.route('/<int:session_id>/close', methods=['POST'])
@faculty_required
def close_session(session_id: int):
    """Stop accepting claims."""
    session, denied = _owned_session(session_id)
    if denied:
        return denied

    summary = get_verification_service().registry.close(session)
    return success_response(
        data={
            'session': session.to_dict(),
            'summary': summary
        },
        message="Session closed"
    )

@sessions_bp.route('/<int:session_id>', methods=['GET'])
@faculty_required
def get_session(session_id: int):
    session, denied = _owned_session(session_id)
    if denied:
        return denied

    data = session.to_dict()
    data['summary'] = get_verification_service().registry.summarize(session)
    return success_response(data={'session': data})

@sessions_bp.route('/<int:session_id>/records', methods=['GET'])
@faculty_required
def session_records(session_id: int):
    """Committed records of a session with claimant names."""
    session, denied = _owned_session(session_id)
    if denied:
        return denied

    registry = get_verification_service().registry
    records = []
    for record in registry.records_for(session):
        item = record.to_dict()
        item['claimant'] = {
            'id': record.claimant.id,
            'name': record.claimant.name,
            'roll_number': record.claimant.roll_number
        }
        records.append(item)

    return success_response(
        data={
            'records': records,
            'summary': registry.summarize(session)
        }
    )

@sessions_bp.route('/<int:session_id>/devices', methods=['GET'])
@faculty_required
def verified_devices(session_id: int):
    """Devices observed on the anchor network for committed claims."""
    session, denied = _owned_session(session_id)
    if denied:
        return denied

    devices = [
        {
            'claimant_id': record.claimant_id,
            'name': record.claimant.name,
            'ip_address': record.observed_ip,
            'mac_address': record.observed_mac,
            'connected_at': record.committed_at.isoformat() if record.committed_at else None
        }
        for record in get_verification_service().registry.records_for(session)
        if record.observed_ip
    ]

    return success_response(
        data={
            'ssid': session.ssid,
            'count': len(devices),
            'devices': devices
        }
    )
