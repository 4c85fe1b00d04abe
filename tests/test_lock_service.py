import pytest

from shop.services.lock_service import LockNotAcquired, LockService


def test_acquire_and_release_by_owner(lock_service, redis_client):
    assert lock_service.acquire_user_lock("alice", "t1") is True
    assert redis_client.ttl("checkout:user:alice:lock") > 0

    assert lock_service.release_user_lock("alice", "t1") is True
    assert redis_client.get("checkout:user:alice:lock") is None


def test_only_owner_can_release(lock_service, redis_client):
    lock_service.acquire_user_lock("alice", "t1")

    assert lock_service.release_user_lock("alice", "intruder") is False
    assert redis_client.get("checkout:user:alice:lock") == "t1"


def test_second_acquire_times_out(redis_client):
    locks = LockService(client=redis_client, wait=0.2)
    assert locks.acquire_user_lock("alice", "t1") is True

    assert locks.acquire_user_lock("alice", "t2") is False


def test_locks_are_per_user(lock_service):
    assert lock_service.acquire_user_lock("alice", "t1") is True
    assert lock_service.acquire_user_lock("bob", "t2", wait=0) is True


def test_context_manager_releases_on_error(lock_service, redis_client):
    with pytest.raises(RuntimeError):
        with lock_service.user_lock("alice"):
            assert redis_client.get("checkout:user:alice:lock") is not None
            raise RuntimeError("boom")

    assert redis_client.get("checkout:user:alice:lock") is None


def test_context_manager_raises_when_busy(redis_client):
    locks = LockService(client=redis_client, wait=0)
    locks.try_acquire_user_lock("alice", "other")

    with pytest.raises(LockNotAcquired):
        with locks.user_lock("alice"):
            pass
