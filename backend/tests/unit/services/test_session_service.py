from __future__ import annotations

from datetime import UTC, datetime, timedelta

from equiprent.services._shared.dto import RequestMeta
from freezegun import freeze_time


def _open(sessions, user_id, token, **kwargs):
    return sessions.create(user_id, token, **kwargs)


def test_create_stores_hash_not_token(sessions, refresh_store, settings):
    with freeze_time("2025-03-01 08:00:00"):
        record = _open(sessions, 1, "raw-refresh", meta=RequestMeta(ip="10.0.0.1", user_agent="curl/8"))

    assert record.token_hash != "raw-refresh"
    assert record.created_at == datetime(2025, 3, 1, 8, tzinfo=UTC)
    assert record.expires_at == record.created_at + settings.refresh_ttl
    assert (record.ip, record.user_agent) == ("10.0.0.1", "curl/8")
    assert len(refresh_store) == 1


def test_find_matching_token_checks_every_session_of_the_user(sessions):
    _open(sessions, 1, "token-a")
    second = _open(sessions, 1, "token-b")
    _open(sessions, 2, "token-c")

    assert sessions.find_matching_token(1, "token-b") == second
    assert sessions.find_matching_token(1, "token-c") is None
    assert sessions.find_matching_token(3, "token-a") is None


def test_find_matching_token_returns_expired_records(sessions):
    past = datetime.now(UTC) - timedelta(minutes=1)
    record = _open(sessions, 1, "old", expires_at=past)

    assert sessions.find_matching_token(1, "old") == record


def test_enforce_max_sessions_keeps_newest(sessions, refresh_store):
    with freeze_time("2025-03-01 08:00:00") as frozen:
        for i in range(7):
            _open(sessions, 1, f"t{i}")
            frozen.tick(1)
    _open(sessions, 2, "other")

    evicted = sessions.enforce_max_sessions(1)

    assert evicted == 2
    kept = refresh_store.list_for_user(1)
    assert [sessions.find_matching_token(1, f"t{i}") is not None for i in range(7)] == [
        False, False, True, True, True, True, True,
    ]
    assert len(kept) == 5
    assert len(refresh_store.list_for_user(2)) == 1


def test_enforce_max_sessions_with_explicit_limit(sessions):
    for i in range(3):
        _open(sessions, 1, f"t{i}")

    assert sessions.enforce_max_sessions(1, max_sessions=1) == 2
    assert sessions.enforce_max_sessions(1, max_sessions=1) == 0


def test_delete_helpers_are_idempotent(sessions):
    record = _open(sessions, 1, "a")
    _open(sessions, 1, "b")

    assert sessions.delete_by_id(record.id) is True
    assert sessions.delete_by_id(record.id) is False
    assert sessions.delete_all_by_user(1) == 1
    assert sessions.delete_all_by_user(1) == 0


def test_list_sessions_hides_expired_and_orders_newest_first(sessions):
    with freeze_time("2025-03-01 08:00:00") as frozen:
        first = _open(sessions, 1, "a")
        frozen.tick(60)
        second = _open(sessions, 1, "b", meta=RequestMeta(ip="1.2.3.4"))
        _open(sessions, 1, "gone", expires_at=datetime(2025, 3, 1, 8, 0, 30, tzinfo=UTC))

        listed = sessions.list_sessions(1)

    assert [s.id for s in listed] == [second.id, first.id]
    assert listed[0].ip == "1.2.3.4"
    assert not hasattr(listed[0], "token_hash")


def test_purge_expired_across_users(sessions, refresh_store):
    now = datetime(2025, 3, 1, 8, tzinfo=UTC)
    _open(sessions, 1, "dead", expires_at=now - timedelta(seconds=1))
    _open(sessions, 2, "edge", expires_at=now)
    _open(sessions, 2, "alive", expires_at=now + timedelta(hours=1))

    assert sessions.purge_expired(now) == 2
    assert len(refresh_store) == 1
    assert sessions.find_matching_token(2, "alive") is not None
