"""Tests 63-76: SQLite subscriber store."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from intent_watch.storage.sqlite import SQLiteSubscriberStore


# ── Test 63: Deposit tracking ────────────────────────────────────


async def test_add_and_list_deposits(store):
    await store.add_deposit("alice", 42)
    await store.add_deposit("alice", 7)
    await store.add_deposit("alice", 42)

    deposits = await store.get_deposits("alice")

    assert [d.deposit_id for d in deposits] == [7, 42]
    assert all(d.status == "tracking" for d in deposits)
    assert all(d.last_intent_id is None for d in deposits)


async def test_remove_is_soft_and_readd_reactivates(store):
    await store.add_deposit("alice", 42)
    await store.update_deposit_status("alice", 42, "fulfilled", "0xabc")
    await store.remove_deposit("alice", 42)

    assert await store.get_deposits("alice") == []
    assert await store.get_users_interested_in_deposit(42) == []

    await store.add_deposit("alice", 42)
    [deposit] = await store.get_deposits("alice")
    assert deposit.status == "tracking"


# ── Test 64: Interested subscribers ──────────────────────────────


async def test_interested_union_of_trackers_and_listen_all(store):
    await store.add_deposit("bob", 42)
    await store.add_deposit("carol", 43)
    await store.set_listen_all("alice", True)
    # tracking and listening to all counts once
    await store.add_deposit("alice", 42)

    assert await store.get_users_interested_in_deposit(42) == ["alice", "bob"]
    assert await store.get_users_interested_in_deposit(43) == ["alice", "carol"]
    assert await store.get_users_interested_in_deposit(99) == ["alice"]

    await store.set_listen_all("alice", False)
    assert await store.get_users_interested_in_deposit(99) == []
    assert not await store.get_listen_all("alice")


# ── Test 65: Status updates ──────────────────────────────────────


async def test_update_status_records_intent(store):
    await store.add_deposit("alice", 42)

    await store.update_deposit_status("alice", 42, "signaled", "0xintent")
    await store.update_deposit_status("alice", 42, "fulfilled")

    [deposit] = await store.get_deposits("alice")
    assert deposit.status == "fulfilled"
    assert deposit.last_intent_id == "0xintent"


async def test_update_status_ignores_untracked(store):
    await store.update_deposit_status("ghost", 42, "fulfilled", "0xintent")
    assert await store.get_deposits("ghost") == []


# ── Test 66: Clearing a subscriber ───────────────────────────────


async def test_clear_subscriber(store):
    await store.add_deposit("alice", 42)
    await store.set_listen_all("alice", True)
    await store.add_sniper("alice", "EUR")

    await store.clear_subscriber("alice")

    assert await store.get_deposits("alice") == []
    assert await store.get_users_interested_in_deposit(42) == []
    assert await store.get_snipers("alice") == []


# ── Test 67: Sniper subscriptions ────────────────────────────────


async def test_sniper_normalisation_and_dedup(store):
    await store.add_sniper("alice", "eur", "Revolut")
    await store.add_sniper("alice", "EUR", "revolut")
    await store.add_sniper("alice", "EUR")

    snipers = await store.get_snipers("alice")

    assert sorted((s.currency_code, s.platform or "") for s in snipers) == [
        ("EUR", ""), ("EUR", "revolut"),
    ]


async def test_users_with_sniper_platform_match(store):
    await store.add_sniper("alice", "EUR")
    await store.add_sniper("bob", "EUR", "wise")
    await store.add_sniper("carol", "EUR", "revolut")
    await store.add_sniper("carol", "EUR", "revolut")

    assert await store.get_users_with_sniper("eur", "Revolut") == ["alice", "carol"]
    assert await store.get_users_with_sniper("EUR") == ["alice", "bob", "carol"]
    assert await store.get_users_with_sniper("GBP", "revolut") == []


async def test_remove_sniper_filters(store):
    await store.add_sniper("alice", "EUR", "revolut")
    await store.add_sniper("alice", "EUR", "wise")
    await store.add_sniper("alice", "GBP")

    await store.remove_sniper("alice", "EUR", "wise")
    assert sorted((s.currency_code, s.platform or "") for s in await store.get_snipers("alice")) == [
        ("EUR", "revolut"), ("GBP", ""),
    ]

    await store.remove_sniper("alice", "eur")
    assert [s.currency_code for s in await store.get_snipers("alice")] == ["GBP"]

    await store.remove_sniper("alice")
    assert await store.get_snipers("alice") == []


async def test_sniper_window_excludes_old_entries(store):
    old = (datetime.now(timezone.utc) - timedelta(days=31)).isoformat()
    await store.db.execute(
        "INSERT INTO user_snipers (subscriber_id, currency, platform, is_active, created_at)"
        " VALUES ('alice', 'EUR', NULL, 1, ?)",
        (old,),
    )
    await store.db.commit()

    assert await store.get_snipers("alice") == []
    assert await store.get_users_with_sniper("EUR") == []


# ── Test 68: Thresholds ──────────────────────────────────────────


async def test_threshold_unset_then_set(store):
    assert await store.get_user_threshold("alice") is None

    await store.set_user_threshold("alice", 1.5)
    assert await store.get_user_threshold("alice") == 1.5

    await store.set_user_threshold("alice", 0.0)
    assert await store.get_user_threshold("alice") == 0.0


async def test_threshold_and_listen_all_share_settings(store):
    await store.set_user_threshold("alice", 2.0)
    await store.set_listen_all("alice", True)

    assert await store.get_user_threshold("alice") == 2.0
    assert await store.get_listen_all("alice")


# ── Test 69: Deposit amounts ─────────────────────────────────────


async def test_deposit_amounts(store):
    assert await store.get_deposit_amount(42) == 0

    await store.store_deposit_amount(42, 250_000_000)
    assert await store.get_deposit_amount(42) == 250_000_000

    await store.store_deposit_amount(42, 300_000_000)
    assert await store.get_deposit_amount(42) == 300_000_000


async def test_deposit_amount_always_read_from_database(store):
    await store.store_deposit_amount(42, 250_000_000)
    await store.db.execute("UPDATE deposit_amounts SET amount=? WHERE deposit_id=?", (5_000_000, 42))
    await store.db.commit()

    assert await store.get_deposit_amount(42) == 5_000_000


async def test_deposit_amount_survives_restart(tmp_path):
    db_path = str(tmp_path / "nested" / "state.db")
    first = SQLiteSubscriberStore(db_path)
    await first.initialize()
    await first.store_deposit_amount(42, 250_000_000)
    await first.add_deposit("alice", 42)
    await first.close()

    second = SQLiteSubscriberStore(db_path)
    await second.initialize()
    try:
        assert await second.get_deposit_amount(42) == 250_000_000
        assert await second.get_users_interested_in_deposit(42) == ["alice"]
    finally:
        await second.close()


# ── Test 70: Logs and counts ─────────────────────────────────────


async def test_counts(store):
    await store.add_deposit("alice", 42)
    await store.add_deposit("bob", 42)
    await store.set_listen_all("carol", True)
    await store.add_sniper("alice", "EUR")
    await store.log_sniper_alert("alice", 42, "EUR", 0.95, 1.0, 5.0)
    await store.log_event_notification("alice", 42, "signaled")
    await store.log_event_notification("bob", 42, "signaled")

    assert await store.get_counts() == {
        "tracked_deposits": 2,
        "listen_all": 1,
        "snipers": 1,
        "sniper_alerts": 1,
        "notifications": 2,
    }
