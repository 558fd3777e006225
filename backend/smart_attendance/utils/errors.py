"""Typed errors raised by the attendance verification engine.

Every error carries a stable ``kind`` the client switches on, the HTTP status
it maps to, a human readable message and a ``details`` payload with the
measured values (distance, confidence, mismatch data) the UI needs to explain
the failure.
"""
from typing import Any, Dict, Optional

class VerificationError(Exception):
    """Base class for all verification failures."""

    kind = 'VerificationError'
    status_code = 400
    default_message = 'Verification failed'

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the failure envelope."""
        return {
            'error': True,
            'kind': self.kind,
            'message': self.message,
            'status_code': self.status_code,
            'details': self.details
        }

class NoActiveSession(VerificationError):
    kind = 'NoActiveSession'
    status_code = 404
    default_message = 'No active attendance session. Please wait for your instructor to start the session.'

class SessionNotFound(VerificationError):
    kind = 'SessionNotFound'
    status_code = 404
    default_message = 'Attendance session not found'

class SessionConflict(VerificationError):
    kind = 'SessionConflict'
    status_code = 409
    default_message = 'Another attendance session is already active'

class NetworkMismatch(VerificationError):
    kind = 'NetworkMismatch'
    default_message = 'You are connected to the wrong network. Reconnect to the class network.'

class SubnetMismatch(VerificationError):
    kind = 'SubnetMismatch'
    default_message = 'Your device is not on the class network segment. Reconnect to the class network.'

class LocationUnavailable(VerificationError):
    kind = 'LocationUnavailable'
    default_message = 'Location unavailable. Please enable location permissions and try again.'

class OutsideGeofence(VerificationError):
    kind = 'OutsideGeofence'

    def __init__(self, distance_meters: float, allowed_radius: float):
        super().__init__(
            f"Too far from class ({distance_meters:g}m, allowed {allowed_radius:g}m). Move closer and try again.",
            distance_meters=distance_meters,
            allowed_radius=allowed_radius
        )

class MatcherError(VerificationError):
    kind = 'MatcherError'
    status_code = 502
    default_message = 'Face could not be checked. Please recapture your photo.'

class FaceNotVerified(VerificationError):
    kind = 'FaceNotVerified'

    def __init__(self, confidence: float, threshold: float):
        percent = round(confidence * 100)
        super().__init__(
            f"Face not verified (confidence {percent}%). Recapture in better lighting.",
            confidence=confidence,
            confidence_percent=percent,
            threshold=threshold
        )

class StepAlreadyComplete(VerificationError):
    kind = 'StepAlreadyComplete'
    status_code = 409
    default_message = 'This verification step is already complete'

class AttemptAlreadyCommitted(VerificationError):
    kind = 'AttemptAlreadyCommitted'
    status_code = 409
    default_message = 'Attendance already marked for this session'

class DuplicateAttendance(VerificationError):
    kind = 'DuplicateAttendance'
    status_code = 409
    default_message = 'Attendance already marked for this session'

class InvalidStateTransition(VerificationError):
    kind = 'InvalidStateTransition'
    status_code = 409
    default_message = 'Verification step submitted out of order'

class AttemptNotFound(VerificationError):
    kind = 'AttemptNotFound'
    status_code = 404
    default_message = 'Verification attempt not found or expired'

class InvalidEvidence(VerificationError):
    kind = 'InvalidEvidence'
    default_message = 'Invalid verification data'
