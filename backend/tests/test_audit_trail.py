from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from moneytrail.models.audit import AuditAction
from moneytrail.schemas.audit import AuditEntry, AuditQuery
from moneytrail.services.audit_trail import AuditTrail, ClientInfo

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _entry(entity_id: str, action: AuditAction = AuditAction.UPDATE, **kwargs) -> AuditEntry:
    return AuditEntry(user_id="7", entity_type="account", entity_id=entity_id, action=action, **kwargs)


def test_timestamps_never_go_backwards(run_db) -> None:
    ticks = iter([T0, T0 - timedelta(seconds=30), T0 + timedelta(seconds=1)])
    trail = AuditTrail(clock=lambda: next(ticks))

    async def record(session_maker):
        async with session_maker() as db:
            for n in range(3):
                await trail.record(db, _entry(str(n)))
            await db.commit()
            return (await trail.query_by_user(db, "7")).items

    records = run_db(record)
    assert [r.entity_id for r in records] == ["2", "1", "0"]
    stamps = [r.timestamp for r in reversed(records)]
    assert stamps == sorted(stamps)
    assert stamps[0] == stamps[1]


def test_equal_timestamps_read_back_in_reverse_insertion_order(run_db) -> None:
    trail = AuditTrail(clock=lambda: T0)

    async def record(session_maker):
        async with session_maker() as db:
            first = await trail.record(db, _entry("a", AuditAction.CREATE))
            second = await trail.record(db, _entry("a", AuditAction.LOGIN))
            await db.commit()
            return first, second, (await trail.query_by_user(db, "7")).items

    first, second, records = run_db(record)
    assert second > first
    assert [r.id for r in records] == [second, first]


def test_query_by_entity_and_limit(run_db) -> None:
    trail = AuditTrail()

    async def record(session_maker):
        async with session_maker() as db:
            for _ in range(3):
                await trail.record(db, _entry("acc-1"))
            await trail.record(db, _entry("acc-2"))
            await db.commit()
            return (
                await trail.query_by_entity(db, "account", "acc-1"),
                await trail.query_by_entity(db, "account", "acc-1", limit=2),
                (await trail.query_by_user(db, "someone-else")).items,
            )

    all_for_entity, limited, other_user = run_db(record)
    assert len(all_for_entity) == 3
    assert len(limited) == 2
    assert other_user == []


def test_client_info_and_payloads_are_stored(run_db) -> None:
    trail = AuditTrail()

    async def record(session_maker):
        async with session_maker() as db:
            await trail.record(
                db,
                _entry("acc-9", old_value={"balance": "1.00"}, new_value=[1, "two", None, {"ok": True}], reason="fix"),
                ClientInfo(ip_address="10.0.0.1", user_agent="pytest"),
            )
            await db.commit()
            return (await trail.query_by_user(db, "7")).items[0]

    record_ = run_db(record)
    assert record_.old_value == {"balance": "1.00"}
    assert record_.new_value == [1, "two", None, {"ok": True}]
    assert record_.reason == "fix"
    assert record_.ip_address == "10.0.0.1"
    assert record_.user_agent == "pytest"


def test_entry_rejects_unknown_action() -> None:
    with pytest.raises(ValidationError):
        AuditEntry(user_id="7", entity_type="account", entity_id="1", action="rename")


def test_query_by_user_filters_and_pages(run_db) -> None:
    days = iter([T0 - timedelta(days=2), T0 - timedelta(days=1), T0, T0 + timedelta(hours=6)])
    trail = AuditTrail(clock=lambda: next(days))

    async def record(session_maker):
        async with session_maker() as db:
            await trail.record(db, _entry("acc-1", AuditAction.CREATE))
            await trail.record(db, _entry("acc-1", AuditAction.UPDATE))
            await trail.record(db, AuditEntry(user_id="7", entity_type="insight", entity_id="9", action=AuditAction.CREATE))
            await trail.record(db, _entry("acc-2", AuditAction.DELETE))
            await db.commit()
            return {
                "page": await trail.query_by_user(db, "7", AuditQuery(limit=3)),
                "rest": await trail.query_by_user(db, "7", AuditQuery(limit=3, offset=3)),
                "accounts": await trail.query_by_user(db, "7", AuditQuery(entity_type="account")),
                "entity": await trail.query_by_user(db, "7", AuditQuery(entity_id="acc-1")),
                "creates": await trail.query_by_user(db, "7", AuditQuery(action=AuditAction.CREATE)),
                "same_day": await trail.query_by_user(db, "7", AuditQuery(start_date=T0.date(), end_date=T0.date())),
                "until_yesterday": await trail.query_by_user(db, "7", AuditQuery(end_date=T0.date() - timedelta(days=1))),
                "oldest_first": await trail.query_by_user(db, "7", AuditQuery(sort_order="asc")),
                "by_action": await trail.query_by_user(db, "7", AuditQuery(sort_by="action", sort_order="asc")),
            }

    pages = run_db(record)
    assert [r.action for r in pages["page"].items] == ["delete", "create", "update"]
    assert pages["page"].total == 4
    assert pages["page"].has_more is True
    assert len(pages["rest"].items) == 1
    assert pages["rest"].has_more is False

    assert pages["accounts"].total == 3
    assert [r.action for r in pages["entity"].items] == ["update", "create"]
    assert {r.entity_type for r in pages["creates"].items} == {"account", "insight"}

    # Both records stamped on T0's day, including the one late in the day.
    assert [r.entity_id for r in pages["same_day"].items] == ["acc-2", "9"]
    assert [r.action for r in pages["until_yesterday"].items] == ["update", "create"]

    assert [r.entity_id for r in pages["oldest_first"].items] == ["acc-1", "acc-1", "9", "acc-2"]
    assert [r.action for r in pages["by_action"].items] == ["create", "create", "delete", "update"]


def test_query_by_action_and_login_history(run_db) -> None:
    trail = AuditTrail()

    async def record(session_maker):
        async with session_maker() as db:
            await trail.record(db, _entry("7", AuditAction.LOGIN))
            await trail.record(db, _entry("acc-1", AuditAction.UPDATE))
            await trail.record(db, _entry("7", AuditAction.LOGOUT))
            await db.commit()
            return (
                await trail.query_by_action(db, "7", AuditAction.UPDATE),
                await trail.login_history(db, "7"),
            )

    updates, logins = run_db(record)
    assert [r.entity_id for r in updates] == ["acc-1"]
    assert [r.action for r in logins] == ["logout", "login"]


def test_entry_rejects_overlong_user_agent() -> None:
    with pytest.raises(ValidationError):
        _entry("acc-1", user_agent="x" * 513)
