"""Geofence verification service."""
import math
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Optional

from smart_attendance.utils.errors import LocationUnavailable, OutsideGeofence
from smart_attendance.utils.validators import Validator

EARTH_RADIUS_METERS = 6371000

# Browser geolocation error codes reported by the client
LOCATION_ERRORS = {
    'permission_denied': 'GPS access denied. Please enable location permissions.',
    'position_unavailable': 'Your position is unavailable. Move to an open area and try again.',
    'timeout': 'Locating your device timed out. Please try again.',
    'unsupported': 'This device does not support geolocation.'
}

@dataclass(frozen=True)
class LocationResult:
    """Accepted geofence evidence."""
    verified: bool
    latitude: float
    longitude: float
    accuracy_meters: Optional[float]
    distance_meters: int
    timestamp: datetime

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data

class GeofenceService:
    """Service for GPS and geofence verification."""

    @staticmethod
    def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Calculate haversine distance between two GPS points in meters."""
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lat = math.radians(lat2 - lat1)
        delta_lon = math.radians(lon2 - lon1)

        a = (math.sin(delta_lat/2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lon/2) ** 2)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1-a))

        return EARTH_RADIUS_METERS * c

    @staticmethod
    def verify_location(user_lat: float, user_lng: float, session) -> Dict:
        """Check a point against the session's anchor and radius."""
        distance = GeofenceService.calculate_distance(
            session.anchor_latitude, session.anchor_longitude,
            user_lat, user_lng
        )

        return {
            'is_inside': distance <= session.radius_meters,
            'distance': distance,
            'radius': session.radius_meters
        }

    @staticmethod
    def verify(session, evidence: Dict) -> LocationResult:
        """Verify claimed location evidence.

        Raises:
            LocationUnavailable: device reported a geolocation failure or sent no fix.
            OutsideGeofence: the fix is farther than the session radius.
        """
        reported_error = evidence.get('error')
        if reported_error:
            raise LocationUnavailable(
                LOCATION_ERRORS.get(reported_error, LocationUnavailable.default_message),
                reason=reported_error
            )

        if evidence.get('latitude') is None or evidence.get('longitude') is None:
            raise LocationUnavailable(reason='missing_coordinates')

        latitude = Validator.number(evidence['latitude'], 'latitude', -90, 90)
        longitude = Validator.number(evidence['longitude'], 'longitude', -180, 180)
        accuracy = evidence.get('accuracy')
        if accuracy is not None:
            accuracy = Validator.number(accuracy, 'accuracy', 0)

        check = GeofenceService.verify_location(latitude, longitude, session)

        if not check['is_inside']:
            # Reported distance must stay above the radius it was rejected against
            reported = round(check['distance'], 1)
            if reported <= check['radius']:
                reported = math.floor(check['radius'] * 10 + 1) / 10
            raise OutsideGeofence(distance_meters=reported, allowed_radius=check['radius'])

        distance_meters = int(round(check['distance']))

        return LocationResult(
            verified=True,
            latitude=latitude,
            longitude=longitude,
            accuracy_meters=accuracy,
            distance_meters=distance_meters,
            timestamp=datetime.utcnow()
        )
