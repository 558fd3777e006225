"""Face match check backed by a pluggable face matcher."""
import hashlib
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Optional

import requests

from smart_attendance.utils.errors import FaceNotVerified, MatcherError
from smart_attendance.utils.validators import Validator

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class MatchResult:
    """Verdict returned by a face matcher."""
    verified: bool
    confidence: float

@dataclass(frozen=True)
class FaceResult:
    """Accepted face evidence."""
    verified: bool
    confidence: float
    image_digest: Optional[str]
    timestamp: datetime

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data

class FaceMatcher:
    """Interface: ``match(claimant_id, payload) -> MatchResult`` or raise MatcherError."""

    def __init__(self, threshold: float):
        self.threshold = threshold

    def match(self, claimant_id: int, payload: Dict) -> MatchResult:
        raise NotImplementedError

    def decide(self, confidence: float) -> MatchResult:
        return MatchResult(verified=confidence >= self.threshold, confidence=confidence)

class DeviceFaceMatcher(FaceMatcher):
    """
    Matcher for on-device recognition.

    The client runs the model locally against the template enrolled on the
    device and reports ``match_confidence``; the server only applies the
    threshold. No face data needs to leave the device.
    """

    def match(self, claimant_id: int, payload: Dict) -> MatchResult:
        if payload.get('face_detected') is False:
            raise MatcherError('No face detected. Please recapture your photo.', reason='no_face_detected')

        if payload.get('match_confidence') is None:
            raise MatcherError('Face matcher returned no confidence score.', reason='missing_confidence')

        confidence = Validator.number(payload['match_confidence'], 'match_confidence', 0, 1)
        return self.decide(confidence)

class HttpFaceMatcher(FaceMatcher):
    """Matcher calling an external face-matching service over HTTP."""

    def __init__(self, threshold: float, url: str, timeout: float = 10):
        super().__init__(threshold)
        self.url = url
        self.timeout = timeout

    def match(self, claimant_id: int, payload: Dict) -> MatchResult:
        image = payload.get('image')
        if not image:
            raise MatcherError('No image captured. Please recapture your photo.', reason='missing_image')

        try:
            response = requests.post(
                self.url,
                json={'claimant_id': claimant_id, 'image': image},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning("Face matcher unreachable: %s", e)
            raise MatcherError('Face service unavailable. Please try again.', reason='service_unavailable')

        if response.status_code == 422:
            raise MatcherError('No face detected. Please recapture your photo.', reason='no_face_detected')
        if not response.ok:
            logger.warning("Face matcher returned HTTP %s", response.status_code)
            raise MatcherError('Face service unavailable. Please try again.',
                               reason='service_error', upstream_status=response.status_code)

        try:
            body = response.json()
            confidence = float(body['confidence'])
        except (ValueError, KeyError, TypeError):
            raise MatcherError('Face service returned an invalid response.', reason='malformed_response')

        if not 0.0 <= confidence <= 1.0:
            raise MatcherError('Face service returned an invalid response.', reason='malformed_response')

        result = self.decide(confidence)
        if body.get('verified') is False:
            # The service may veto a match it considers spoofed
            return MatchResult(verified=False, confidence=confidence)
        return result

def create_face_matcher(config) -> FaceMatcher:
    """Build the matcher selected by FACE_MATCHER_BACKEND."""
    threshold = config.get('FACE_RECOGNITION_THRESHOLD', 0.8)
    backend = config.get('FACE_MATCHER_BACKEND', 'device')

    if backend == 'http':
        return HttpFaceMatcher(
            threshold,
            url=config['FACE_MATCHER_URL'],
            timeout=config.get('FACE_MATCHER_TIMEOUT', 10)
        )
    if backend == 'device':
        return DeviceFaceMatcher(threshold)

    raise ValueError(f"Unknown face matcher backend: {backend}")

class FaceMatchCheck:
    """Turns a matcher verdict into a face step result."""

    def __init__(self, matcher: FaceMatcher):
        self.matcher = matcher

    @staticmethod
    def image_digest(payload: Dict) -> Optional[str]:
        image = payload.get('image')
        if not image:
            return None
        return hashlib.sha256(str(image).encode()).hexdigest()

    def verify(self, session, claimant_id: int, payload: Dict) -> FaceResult:
        """
        Match the captured face.

        Raises:
            MatcherError: the matcher could not produce a verdict (passed through).
            FaceNotVerified: confidence below threshold.
        """
        logger.debug("Face match for claimant %s in session %s", claimant_id, session.id)
        result = self.matcher.match(claimant_id, payload)

        if not result.verified:
            raise FaceNotVerified(confidence=result.confidence, threshold=self.matcher.threshold)

        return FaceResult(
            verified=True,
            confidence=result.confidence,
            image_digest=self.image_digest(payload),
            timestamp=datetime.utcnow()
        )
