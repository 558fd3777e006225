"""Verification attempt: one claimant's progress through the verification steps."""
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from smart_attendance.services.face_match_service import FaceResult
from smart_attendance.services.geofence_service import LocationResult
from smart_attendance.services.network_check import NetworkResult

class VerificationState(Enum):
    """Attempt states, in pipeline order."""
    IDLE = 'idle'
    NETWORK_PENDING = 'network_pending'
    NETWORK_VERIFIED = 'network_verified'
    LOCATION_PENDING = 'location_pending'
    LOCATION_VERIFIED = 'location_verified'
    FACE_PENDING = 'face_pending'
    FACE_VERIFIED = 'face_verified'
    COMMITTED = 'committed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'

TERMINAL_STATES = {VerificationState.COMMITTED, VerificationState.FAILED, VerificationState.CANCELLED}

def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None

def _result_from_dict(cls, data: Optional[Dict]):
    if not data:
        return None
    data = dict(data)
    data['timestamp'] = _parse_time(data['timestamp'])
    return cls(**data)

@dataclass
class VerificationAttempt:
    """Snapshot of an attempt; recorded step results are frozen dataclasses."""
    attempt_id: str
    claimant_id: int
    session_id: int
    state: VerificationState
    started_at: datetime
    last_touched: datetime
    network: Optional[NetworkResult] = None
    location: Optional[LocationResult] = None
    face: Optional[FaceResult] = None
    failure_reason: Optional[str] = None
    record_id: Optional[int] = None

    @classmethod
    def new(cls, claimant_id: int, session_id: int) -> 'VerificationAttempt':
        now = datetime.utcnow()
        return cls(
            attempt_id=f"attempt_{secrets.token_urlsafe(16)}",
            claimant_id=claimant_id,
            session_id=session_id,
            state=VerificationState.IDLE,
            started_at=now,
            last_touched=now
        )

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def touch(self) -> None:
        self.last_touched = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'attempt_id': self.attempt_id,
            'claimant_id': self.claimant_id,
            'session_id': self.session_id,
            'state': self.state.value,
            'started_at': self.started_at.isoformat(),
            'last_touched': self.last_touched.isoformat(),
            'steps': {
                'network': self.network.to_dict() if self.network else None,
                'location': self.location.to_dict() if self.location else None,
                'face': self.face.to_dict() if self.face else None
            },
            'failure_reason': self.failure_reason,
            'record_id': self.record_id
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VerificationAttempt':
        steps = data.get('steps', {})
        return cls(
            attempt_id=data['attempt_id'],
            claimant_id=data['claimant_id'],
            session_id=data['session_id'],
            state=VerificationState(data['state']),
            started_at=_parse_time(data['started_at']),
            last_touched=_parse_time(data['last_touched']),
            network=_result_from_dict(NetworkResult, steps.get('network')),
            location=_result_from_dict(LocationResult, steps.get('location')),
            face=_result_from_dict(FaceResult, steps.get('face')),
            failure_reason=data.get('failure_reason'),
            record_id=data.get('record_id')
        )
