"""Test geofence verification."""
from types import SimpleNamespace
import pytest
from smart_attendance.services.geofence_service import GeofenceService
from smart_attendance.utils.errors import InvalidEvidence, LocationUnavailable, OutsideGeofence
from conftest import ANCHOR, location_evidence, point_north

@pytest.fixture
def session():
    return SimpleNamespace(id=1, anchor_latitude=ANCHOR[0], anchor_longitude=ANCHOR[1], radius_meters=15)

def test_distance_zero_for_same_point():
    assert GeofenceService.calculate_distance(*ANCHOR, *ANCHOR) == 0

def test_distance_is_symmetric():
    other = (21.2600, 81.6400)
    forward = GeofenceService.calculate_distance(*ANCHOR, *other)
    backward = GeofenceService.calculate_distance(*other, *ANCHOR)
    assert forward == pytest.approx(backward)

def test_distance_one_degree_latitude():
    distance = GeofenceService.calculate_distance(0, 0, 1, 0)
    assert distance == pytest.approx(111195, abs=1)

def test_inside_geofence(session):
    """Claimant 10m from the anchor is accepted."""
    result = GeofenceService.verify(session, location_evidence(10))

    assert result.verified is True
    assert result.distance_meters == 10
    assert result.accuracy_meters == 5

def test_outside_geofence(session):
    """Claimant 20m from a 15m anchor is rejected with the measured values."""
    with pytest.raises(OutsideGeofence) as exc:
        GeofenceService.verify(session, location_evidence(20))

    assert exc.value.details['distance_meters'] == 20
    assert exc.value.details['allowed_radius'] == 15
    assert '20m' in exc.value.message

def test_exact_radius_is_accepted(session):
    latitude, longitude = point_north(12)
    session.radius_meters = GeofenceService.calculate_distance(*ANCHOR, latitude, longitude)

    result = GeofenceService.verify(session, {'latitude': latitude, 'longitude': longitude})

    assert result.verified is True
    assert result.distance_meters == 12
    assert result.accuracy_meters is None

def test_device_reported_error(session):
    with pytest.raises(LocationUnavailable) as exc:
        GeofenceService.verify(session, {'error': 'permission_denied'})

    assert exc.value.details['reason'] == 'permission_denied'
    assert 'GPS access denied' in exc.value.message

def test_missing_coordinates(session):
    with pytest.raises(LocationUnavailable) as exc:
        GeofenceService.verify(session, {'latitude': ANCHOR[0]})

    assert exc.value.details['reason'] == 'missing_coordinates'

def test_coordinates_out_of_range(session):
    with pytest.raises(InvalidEvidence) as exc:
        GeofenceService.verify(session, {'latitude': 95, 'longitude': ANCHOR[1]})

    assert exc.value.details['field'] == 'latitude'

def test_rejection_never_reports_distance_within_radius(session):
    """A fix just past the radius reports a distance above it."""
    with pytest.raises(OutsideGeofence) as exc:
        GeofenceService.verify(session, location_evidence(15.04))

    assert exc.value.details['distance_meters'] > 15
    assert '(15m' not in exc.value.message
    assert '15.1m' in exc.value.message

def test_rejection_reports_one_decimal(session):
    with pytest.raises(OutsideGeofence) as exc:
        GeofenceService.verify(session, location_evidence(15.4))

    assert exc.value.details['distance_meters'] == 15.4
    assert '15.4m' in exc.value.message

def test_infinite_accuracy_is_rejected(session):
    evidence = location_evidence(10)
    evidence['accuracy'] = float('inf')

    with pytest.raises(InvalidEvidence) as exc:
        GeofenceService.verify(session, evidence)

    assert exc.value.details['field'] == 'accuracy'
