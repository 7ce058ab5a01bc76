"""Tests for the per-student in-flight guards."""
import pytest

from student_attendance.services.submission_guard import (
    LocalSubmissionGuard, RedisSubmissionGuard, SubmissionInProgress, build_submission_guard
)

class StubRedis:
    """Minimal SET NX EX / GET / DELETE store."""

    def __init__(self):
        self.store = {}
        self.expiries = {}

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        self.expiries[key] = ex
        return True

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        self.store.pop(key, None)

def test_redis_guard_rejects_second_holder():
    client = StubRedis()
    guard = RedisSubmissionGuard(client, ttl_seconds=30)

    with guard.hold(7):
        assert client.expiries['self-attendance:inflight:7'] == 30
        with pytest.raises(SubmissionInProgress):
            with guard.hold(7):
                pass
        # Other students are unaffected
        with guard.hold(8):
            pass

    assert client.store == {}

def test_redis_guard_releases_only_its_own_token():
    client = StubRedis()
    guard = RedisSubmissionGuard(client)

    with guard.hold(7):
        # Our key expired and another worker took it
        client.store['self-attendance:inflight:7'] = 'other-worker'

    assert client.store['self-attendance:inflight:7'] == 'other-worker'

def test_redis_guard_releases_after_error():
    client = StubRedis()
    guard = RedisSubmissionGuard(client)

    with pytest.raises(RuntimeError):
        with guard.hold(7):
            raise RuntimeError('boom')

    assert client.store == {}

def test_local_guard():
    guard = LocalSubmissionGuard()

    with guard.hold(1):
        assert not guard.acquire(1)
    assert guard.acquire(1)

def test_build_guard_without_redis_url():
    assert isinstance(build_submission_guard({'REDIS_URL': None}), LocalSubmissionGuard)
