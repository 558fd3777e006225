"""Shared fixtures for the verification engine tests."""
import math
import pytest
from flask_jwt_extended import create_access_token
from smart_attendance import create_app, db
from smart_attendance.models.user import User, UserRole
from smart_attendance.services.verification_service import get_verification_service

ANCHOR = (21.2500, 81.6300)
ANCHOR_IP = '192.168.43.1'
SSID = 'ATTEND_ROOM1'
RADIUS = 15

def point_north(meters: float, origin=ANCHOR):
    """Coordinate ``meters`` due north of ``origin``."""
    latitude, longitude = origin
    return latitude + math.degrees(meters / 6371000), longitude

def network_evidence(**overrides):
    evidence = {
        'ssid': SSID,
        'ip_address': '192.168.43.27',
        'mac_address': 'AA:BB:CC:DD:EE:FF'
    }
    evidence.update(overrides)
    return evidence

def location_evidence(meters: float = 10, accuracy: float = 5):
    latitude, longitude = point_north(meters)
    return {'latitude': latitude, 'longitude': longitude, 'accuracy': accuracy}

def face_evidence(confidence: float = 0.92, **overrides):
    evidence = {
        'image': 'aGVsbG8tZmFjZQ==',
        'face_detected': True,
        'match_confidence': confidence
    }
    evidence.update(overrides)
    return evidence

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def service(app):
    return get_verification_service()

@pytest.fixture
def registry(service):
    return service.registry

@pytest.fixture
def faculty(app):
    return User(email='faculty@example.com', name='Asha Verma', role=UserRole.FACULTY).save()

@pytest.fixture
def student(app):
    return User(
        email='student@example.com',
        name='Ravi Kumar',
        roll_number='CS-2024-001',
        role=UserRole.STUDENT
    ).save()

@pytest.fixture
def other_student(app):
    return User(
        email='other@example.com',
        name='Meera Nair',
        roll_number='CS-2024-002',
        role=UserRole.STUDENT
    ).save()

@pytest.fixture
def active_session(registry, faculty):
    """Active session at the test anchor with a 15m geofence."""
    session = registry.open_session(faculty, 'CS101', 'MON-09:00')
    return registry.activate(
        session,
        anchor_ip=ANCHOR_IP,
        latitude=ANCHOR[0],
        longitude=ANCHOR[1],
        ssid=SSID,
        radius_meters=RADIUS
    )

def auth_headers(user):
    token = create_access_token(identity=str(user.id))
    return {'Authorization': f'Bearer {token}'}

@pytest.fixture
def student_headers(student):
    return auth_headers(student)

@pytest.fixture
def faculty_headers(faculty):
    return auth_headers(faculty)
