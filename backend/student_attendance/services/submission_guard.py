"""Per-student in-flight submission guard.

Only one check-in/check-out request per student may be processed at a time.
Redis (SET NX EX) is used when REDIS_URL is configured so the guard holds
across worker processes; otherwise a process-local set is used.
"""
import logging
import secrets
import threading
from contextlib import contextmanager

import redis

logger = logging.getLogger(__name__)

class SubmissionInProgress(Exception):
    """Another submission for the same student has not finished yet."""

class LocalSubmissionGuard:
    """Guard for single-process deployments and tests."""

    def __init__(self):
        self._lock = threading.Lock()
        self._held = set()

    def acquire(self, student_id: int) -> bool:
        with self._lock:
            if student_id in self._held:
                return False
            self._held.add(student_id)
            return True

    def release(self, student_id: int) -> None:
        with self._lock:
            self._held.discard(student_id)

    @contextmanager
    def hold(self, student_id: int):
        if not self.acquire(student_id):
            raise SubmissionInProgress(student_id)
        try:
            yield
        finally:
            self.release(student_id)

class RedisSubmissionGuard:
    """Guard shared through Redis; the key expires if a worker dies mid-request."""

    KEY_PREFIX = 'self-attendance:inflight:'

    def __init__(self, client: redis.Redis, ttl_seconds: int = 30):
        self.client = client
        self.ttl_seconds = ttl_seconds

    def _key(self, student_id: int) -> str:
        return f'{self.KEY_PREFIX}{student_id}'

    @contextmanager
    def hold(self, student_id: int):
        token = secrets.token_hex(8)
        if not self.client.set(self._key(student_id), token, nx=True, ex=self.ttl_seconds):
            raise SubmissionInProgress(student_id)
        try:
            yield
        finally:
            # Only delete our own token; the key may have expired and been re-taken
            if self.client.get(self._key(student_id)) == token:
                self.client.delete(self._key(student_id))

def build_submission_guard(config):
    """Pick the guard implementation from configuration."""
    redis_url = config.get('REDIS_URL')
    if redis_url:
        client = redis.Redis.from_url(redis_url, decode_responses=True)
        logger.info("Using Redis submission guard")
        return RedisSubmissionGuard(client, config.get('SUBMISSION_LOCK_SECONDS', 30))
    return LocalSubmissionGuard()
