"""Attendance API: claimant-facing verification endpoints."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity
from smart_attendance import limiter
from smart_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from smart_attendance.services.verification_service import get_verification_service
from smart_attendance.utils.decorators import student_required
from smart_attendance.utils.helpers import success_response
from smart_attendance.utils.validators import Validator

attendance_bp = Blueprint('attendance', __name__)

NEXT_STEP_MESSAGES = {
    'location_pending': "Network verified. Now verifying your location",
    'face_pending': "Location verified. Capture your face to finish",
    'face_verified': "Face verified. Submit to mark your attendance"
}

def _claimant_id() -> int:
    return int(get_jwt_identity())

def _body() -> dict:
    return Validator.json_body(request.get_json(silent=True))

@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')

# =================== SESSION LOOKUP ===================

@attendance_bp.route('/sessions/active', methods=['GET'])
@jwt_required()
@student_required
def active_sessions():
    """Resolve the active session for a network name, or list active sessions."""
    registry = get_verification_service().registry
    ssid = request.args.get('ssid')

    if ssid:
        session = registry.find_active_by_network_name(ssid)
        return success_response(
            data={'session': session.to_public_dict()},
            message="Active session found"
        )

    sessions = registry.list_active()
    return success_response(
        data={
            'count': len(sessions),
            'sessions': [s.to_public_dict() for s in sessions]
        }
    )

# =================== ATTEMPTS ===================

@attendance_bp.route('/attempts', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("10 per minute")
def start_attempt():
    """Start a verification attempt for a session."""
    data = _body()
    Validator.require_fields(data, ['session_id'])

    session_id = Validator.integer(data['session_id'], 'session_id')
    attempt = get_verification_service().start(_claimant_id(), session_id)

    return success_response(
        data={'attempt': attempt.to_dict()},
        message="Verification started. Checking your network connection",
        status_code=201
    )

@attendance_bp.route('/attempts/<attempt_id>', methods=['GET'])
@jwt_required()
@student_required
def get_attempt(attempt_id: str):
    """Current state of an attempt."""
    attempt = get_verification_service().get_attempt(attempt_id, _claimant_id())
    return success_response(data={'attempt': attempt.to_dict()})

@attendance_bp.route('/attempts/<attempt_id>/network', methods=['POST'])
@jwt_required()
@student_required
def submit_network(attempt_id: str):
    """Step 1: network proximity evidence (ssid, ip_address, mac_address)."""
    attempt = get_verification_service().submit_network_evidence(attempt_id, _claimant_id(), _body())
    return success_response(
        data={'attempt': attempt.to_dict()},
        message=NEXT_STEP_MESSAGES[attempt.state.value]
    )

@attendance_bp.route('/attempts/<attempt_id>/location', methods=['POST'])
@jwt_required()
@student_required
def submit_location(attempt_id: str):
    """Step 2: geolocation evidence (latitude, longitude, accuracy) or a device error."""
    attempt = get_verification_service().submit_location_evidence(attempt_id, _claimant_id(), _body())
    return success_response(
        data={
            'attempt': attempt.to_dict(),
            'distance_meters': attempt.location.distance_meters
        },
        message=NEXT_STEP_MESSAGES[attempt.state.value]
    )

@attendance_bp.route('/attempts/<attempt_id>/face', methods=['POST'])
@jwt_required()
@student_required
def submit_face(attempt_id: str):
    """Step 3: face evidence; commits the attendance unless ``commit`` is false."""
    data = _body()
    service = get_verification_service()
    claimant_id = _claimant_id()

    if data.get('commit', True) is False:
        attempt = service.submit_face_evidence(attempt_id, claimant_id, data)
        return success_response(
            data={
                'attempt': attempt.to_dict(),
                'confidence': attempt.face.confidence
            },
            message=f"Face verified! Confidence: {round(attempt.face.confidence * 100)}%"
        )

    record = service.verify_face_and_commit(attempt_id, claimant_id, data)
    return _committed_response(record)

@attendance_bp.route('/attempts/<attempt_id>/commit', methods=['POST'])
@jwt_required()
@student_required
def commit_attempt(attempt_id: str):
    """Step 4: commit a face-verified attempt."""
    record = get_verification_service().commit(attempt_id, _claimant_id())
    return _committed_response(record)

@attendance_bp.route('/attempts/<attempt_id>', methods=['DELETE'])
@jwt_required()
@student_required
def cancel_attempt(attempt_id: str):
    """Abandon an attempt."""
    attempt = get_verification_service().cancel(attempt_id, _claimant_id())
    return success_response(
        data={'attempt': attempt.to_dict()},
        message="Verification cancelled"
    )

def _committed_response(record: AttendanceRecord):
    return success_response(
        data={
            'record': record.to_dict(),
            'status': record.status.value
        },
        message=f"Attendance marked as {record.status.value.upper()}",
        status_code=201
    )

# =================== HISTORY ===================

@attendance_bp.route('/my-records', methods=['GET'])
@jwt_required()
@student_required
def get_my_attendance():
    """Get the claimant's attendance records."""
    query = AttendanceRecord.query.filter_by(claimant_id=_claimant_id())

    from_date = request.args.get('from_date')
    to_date = request.args.get('to_date')
    if from_date:
        query = query.filter(AttendanceRecord.committed_at >= Validator.iso_datetime(from_date, 'from_date'))
    if to_date:
        query = query.filter(AttendanceRecord.committed_at <= Validator.iso_datetime(to_date, 'to_date'))

    records = query.order_by(AttendanceRecord.committed_at.desc()).all()

    attendance_data = []
    for record in records:
        item = record.to_dict()
        item['class_ref'] = record.session.class_ref
        item['timeslot'] = record.session.timeslot
        attendance_data.append(item)

    total = len(records)
    present = len([r for r in records if r.status == AttendanceStatus.PRESENT])
    late = len([r for r in records if r.status == AttendanceStatus.LATE])
    attendance_rate = ((present + late) / total * 100) if total > 0 else 0

    return success_response(
        data={
            'records': attendance_data,
            'statistics': {
                'total': total,
                'present': present,
                'late': late,
                'absent': total - present - late,
                'attendance_rate': round(attendance_rate, 2)
            }
        }
    )
