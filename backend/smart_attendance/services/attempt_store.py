"""Storage for in-flight verification attempts.

Attempts are disposable: losing one only forces the claimant to start again,
so they live in process memory or Redis rather than the database.
"""
import copy
import json
import threading
from datetime import datetime, timedelta
from typing import Dict, Optional

import redis

from smart_attendance.services.attempt import VerificationAttempt

class MemoryAttemptStore:
    """Process-local store with lazy idle expiry."""

    def __init__(self, idle_seconds: int = 120):
        self.idle_seconds = idle_seconds
        self._attempts: Dict[str, VerificationAttempt] = {}
        self._lock = threading.Lock()

    def _is_expired(self, attempt: VerificationAttempt) -> bool:
        return datetime.utcnow() - attempt.last_touched > timedelta(seconds=self.idle_seconds)

    def _sweep(self) -> None:
        expired = [key for key, stored in self._attempts.items() if self._is_expired(stored)]
        for key in expired:
            del self._attempts[key]

    def save(self, attempt: VerificationAttempt) -> None:
        with self._lock:
            self._sweep()
            self._attempts[attempt.attempt_id] = copy.deepcopy(attempt)

    def get(self, attempt_id: str) -> Optional[VerificationAttempt]:
        with self._lock:
            attempt = self._attempts.get(attempt_id)
            if attempt is not None and self._is_expired(attempt):
                del self._attempts[attempt_id]
                return None
            return copy.deepcopy(attempt) if attempt is not None else None

    def delete(self, attempt_id: str) -> None:
        with self._lock:
            self._attempts.pop(attempt_id, None)

class RedisAttemptStore:
    """Redis-backed store; the key TTL is the idle window."""

    KEY_PREFIX = 'attendance:attempt:'

    def __init__(self, client: redis.Redis, idle_seconds: int = 120):
        self.client = client
        self.idle_seconds = idle_seconds

    def _key(self, attempt_id: str) -> str:
        return f"{self.KEY_PREFIX}{attempt_id}"

    def save(self, attempt: VerificationAttempt) -> None:
        self.client.setex(
            self._key(attempt.attempt_id),
            self.idle_seconds,
            json.dumps(attempt.to_dict(), separators=(',', ':'))
        )

    def get(self, attempt_id: str) -> Optional[VerificationAttempt]:
        raw = self.client.get(self._key(attempt_id))
        if raw is None:
            return None
        return VerificationAttempt.from_dict(json.loads(raw))

    def delete(self, attempt_id: str) -> None:
        self.client.delete(self._key(attempt_id))

def create_attempt_store(config):
    """Build the store selected by ATTEMPT_STORE."""
    idle_seconds = config.get('ATTEMPT_IDLE_SECONDS', 120)

    if config.get('ATTEMPT_STORE') == 'redis':
        client = redis.Redis.from_url(config['REDIS_URL'], decode_responses=True)
        return RedisAttemptStore(client, idle_seconds)

    return MemoryAttemptStore(idle_seconds)
