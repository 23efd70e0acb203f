"""SQLite implementation of the SubscriberStore protocol."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import aiosqlite

from intent_watch.models.records import SniperSubscription, TrackedDeposit

SNIPER_WINDOW_DAYS = 30

SCHEMA = """
-- Deposits followed per subscriber (soft-deleted via is_active)
CREATE TABLE IF NOT EXISTS user_deposits (
    subscriber_id TEXT NOT NULL,
    deposit_id INTEGER NOT NULL,
    status TEXT NOT NULL DEFAULT 'tracking',
    intent_hash TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (subscriber_id, deposit_id)
);
CREATE INDEX IF NOT EXISTS idx_user_deposits_deposit ON user_deposits(deposit_id);

-- Per-subscriber settings
CREATE TABLE IF NOT EXISTS user_settings (
    subscriber_id TEXT PRIMARY KEY,
    listen_all INTEGER NOT NULL DEFAULT 0,
    threshold REAL,
    is_active INTEGER NOT NULL DEFAULT 1,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Sniper subscriptions, append-only; only the last 30 days count
CREATE TABLE IF NOT EXISTS user_snipers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subscriber_id TEXT NOT NULL,
    currency TEXT NOT NULL,
    platform TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_user_snipers_currency ON user_snipers(currency);

-- Deposit face amounts (USDC base units)
CREATE TABLE IF NOT EXISTS deposit_amounts (
    deposit_id INTEGER PRIMARY KEY,
    amount INTEGER NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Sniper alert log
CREATE TABLE IF NOT EXISTS sniper_alerts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subscriber_id TEXT NOT NULL,
    deposit_id INTEGER NOT NULL,
    currency TEXT NOT NULL,
    deposit_rate REAL NOT NULL,
    market_rate REAL NOT NULL,
    percent_diff REAL NOT NULL,
    sent_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Event notification log
CREATE TABLE IF NOT EXISTS event_notifications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subscriber_id TEXT NOT NULL,
    deposit_id INTEGER NOT NULL,
    event_type TEXT NOT NULL,
    sent_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_event_notifications_sent ON event_notifications(sent_at);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _window_start() -> str:
    return (datetime.now(timezone.utc) - timedelta(days=SNIPER_WINDOW_DAYS)).isoformat()


class SQLiteSubscriberStore:
    """SQLite-backed implementation of the SubscriberStore protocol."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Deposit tracking ───────────────────────────────────

    async def add_deposit(self, subscriber_id: str, deposit_id: int) -> None:
        now = _now()
        await self.db.execute(
            "INSERT INTO user_deposits"
            " (subscriber_id, deposit_id, status, is_active, created_at, updated_at)"
            " VALUES (?, ?, 'tracking', 1, ?, ?)"
            " ON CONFLICT(subscriber_id, deposit_id) DO UPDATE SET"
            " status='tracking', is_active=1, updated_at=excluded.updated_at",
            (subscriber_id, deposit_id, now, now),
        )
        await self.db.commit()

    async def remove_deposit(self, subscriber_id: str, deposit_id: int) -> None:
        await self.db.execute(
            "UPDATE user_deposits SET is_active=0, updated_at=?"
            " WHERE subscriber_id=? AND deposit_id=?",
            (_now(), subscriber_id, deposit_id),
        )
        await self.db.commit()

    async def get_deposits(self, subscriber_id: str) -> list[TrackedDeposit]:
        async with self.db.execute(
            "SELECT * FROM user_deposits WHERE subscriber_id=? AND is_active=1"
            " ORDER BY deposit_id",
            (subscriber_id,),
        ) as cur:
            return [
                TrackedDeposit(
                    subscriber_id=row["subscriber_id"],
                    deposit_id=row["deposit_id"],
                    status=row["status"],
                    last_intent_id=row["intent_hash"],
                    updated_at=row["updated_at"],
                )
                async for row in cur
            ]

    async def set_listen_all(self, subscriber_id: str, listen_all: bool) -> None:
        await self.db.execute(
            "INSERT INTO user_settings (subscriber_id, listen_all, is_active, updated_at)"
            " VALUES (?, ?, 1, ?)"
            " ON CONFLICT(subscriber_id) DO UPDATE SET listen_all=excluded.listen_all,"
            " is_active=1, updated_at=excluded.updated_at",
            (subscriber_id, int(listen_all), _now()),
        )
        await self.db.commit()

    async def get_listen_all(self, subscriber_id: str) -> bool:
        async with self.db.execute(
            "SELECT listen_all FROM user_settings WHERE subscriber_id=? AND is_active=1",
            (subscriber_id,),
        ) as cur:
            row = await cur.fetchone()
            return bool(row["listen_all"]) if row else False

    async def get_users_interested_in_deposit(self, deposit_id: int) -> list[str]:
        async with self.db.execute(
            "SELECT subscriber_id FROM user_settings WHERE listen_all=1 AND is_active=1"
            " UNION"
            " SELECT subscriber_id FROM user_deposits WHERE deposit_id=? AND is_active=1",
            (deposit_id,),
        ) as cur:
            return sorted([row["subscriber_id"] async for row in cur])

    async def update_deposit_status(
        self, subscriber_id: str, deposit_id: int, status: str,
        intent_id: str | None = None,
    ) -> None:
        if intent_id:
            await self.db.execute(
                "UPDATE user_deposits SET status=?, intent_hash=?, updated_at=?"
                " WHERE subscriber_id=? AND deposit_id=? AND is_active=1",
                (status, intent_id, _now(), subscriber_id, deposit_id),
            )
        else:
            await self.db.execute(
                "UPDATE user_deposits SET status=?, updated_at=?"
                " WHERE subscriber_id=? AND deposit_id=? AND is_active=1",
                (status, _now(), subscriber_id, deposit_id),
            )
        await self.db.commit()

    async def clear_subscriber(self, subscriber_id: str) -> None:
        """Deactivate everything a subscriber follows. Rows are kept."""
        now = _now()
        for table in ("user_deposits", "user_settings", "user_snipers"):
            await self.db.execute(
                f"UPDATE {table} SET is_active=0, updated_at=? WHERE subscriber_id=?",
                (now, subscriber_id),
            )
        await self.db.commit()

    # ── Sniper ─────────────────────────────────────────────

    async def add_sniper(
        self, subscriber_id: str, currency: str, platform: str | None = None,
    ) -> None:
        await self.db.execute(
            "INSERT INTO user_snipers (subscriber_id, currency, platform, is_active, created_at)"
            " VALUES (?, ?, ?, 1, ?)",
            (subscriber_id, currency.upper(), platform.lower() if platform else None, _now()),
        )
        await self.db.commit()

    async def remove_sniper(
        self, subscriber_id: str, currency: str | None = None,
        platform: str | None = None,
    ) -> None:
        sql = "UPDATE user_snipers SET is_active=0, updated_at=? WHERE subscriber_id=?"
        params: list = [_now(), subscriber_id]
        if currency:
            sql += " AND currency=?"
            params.append(currency.upper())
        if platform:
            sql += " AND platform=?"
            params.append(platform.lower())
        await self.db.execute(sql, params)
        await self.db.commit()

    async def get_snipers(self, subscriber_id: str) -> list[SniperSubscription]:
        """Active subscriptions from the last 30 days, newest per currency/platform."""
        async with self.db.execute(
            "SELECT currency, platform, created_at FROM user_snipers"
            " WHERE subscriber_id=? AND is_active=1 AND created_at >= ?"
            " ORDER BY created_at DESC",
            (subscriber_id, _window_start()),
        ) as cur:
            rows = await cur.fetchall()

        unique: dict[tuple[str, str | None], SniperSubscription] = {}
        for row in rows:
            key = (row["currency"], row["platform"])
            if key not in unique:
                unique[key] = SniperSubscription(
                    subscriber_id=subscriber_id,
                    currency_code=row["currency"],
                    platform=row["platform"],
                    created_at=row["created_at"],
                )
        return list(unique.values())

    async def get_users_with_sniper(
        self, currency: str, platform: str | None = None,
    ) -> list[str]:
        sql = (
            "SELECT DISTINCT subscriber_id FROM user_snipers"
            " WHERE currency=? AND is_active=1 AND created_at >= ?"
        )
        params: list = [currency.upper(), _window_start()]
        if platform:
            sql += " AND (platform=? OR platform IS NULL)"
            params.append(platform.lower())
        sql += " ORDER BY subscriber_id"
        async with self.db.execute(sql, params) as cur:
            return [row["subscriber_id"] async for row in cur]

    async def get_user_threshold(self, subscriber_id: str) -> float | None:
        async with self.db.execute(
            "SELECT threshold FROM user_settings WHERE subscriber_id=? AND is_active=1",
            (subscriber_id,),
        ) as cur:
            row = await cur.fetchone()
            if row is None or row["threshold"] is None:
                return None
            return float(row["threshold"])

    async def set_user_threshold(self, subscriber_id: str, threshold: float) -> None:
        await self.db.execute(
            "INSERT INTO user_settings (subscriber_id, threshold, is_active, updated_at)"
            " VALUES (?, ?, 1, ?)"
            " ON CONFLICT(subscriber_id) DO UPDATE SET threshold=excluded.threshold,"
            " is_active=1, updated_at=excluded.updated_at",
            (subscriber_id, threshold, _now()),
        )
        await self.db.commit()

    # ── Deposit amounts ────────────────────────────────────

    async def store_deposit_amount(self, deposit_id: int, amount: int) -> None:
        await self.db.execute(
            "INSERT INTO deposit_amounts (deposit_id, amount, created_at) VALUES (?, ?, ?)"
            " ON CONFLICT(deposit_id) DO UPDATE SET amount=excluded.amount",
            (int(deposit_id), int(amount), _now()),
        )
        await self.db.commit()

    async def get_deposit_amount(self, deposit_id: int) -> int:
        async with self.db.execute(
            "SELECT amount FROM deposit_amounts WHERE deposit_id=?", (int(deposit_id),)
        ) as cur:
            row = await cur.fetchone()
            return int(row["amount"]) if row else 0

    # ── Logs ───────────────────────────────────────────────

    async def log_sniper_alert(
        self, subscriber_id: str, deposit_id: int, currency: str,
        deposit_rate: float, market_rate: float, percent_diff: float,
    ) -> None:
        await self.db.execute(
            "INSERT INTO sniper_alerts"
            " (subscriber_id, deposit_id, currency, deposit_rate, market_rate,"
            "  percent_diff, sent_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?)",
            (subscriber_id, deposit_id, currency, deposit_rate, market_rate,
             percent_diff, _now()),
        )
        await self.db.commit()

    async def log_event_notification(
        self, subscriber_id: str, deposit_id: int, event_type: str,
    ) -> None:
        await self.db.execute(
            "INSERT INTO event_notifications (subscriber_id, deposit_id, event_type, sent_at)"
            " VALUES (?, ?, ?, ?)",
            (subscriber_id, deposit_id, event_type, _now()),
        )
        await self.db.commit()

    # ── Stats ──────────────────────────────────────────────

    async def get_counts(self) -> dict[str, int]:
        """Row counts for the status command."""
        counts: dict[str, int] = {}
        queries = {
            "tracked_deposits": "SELECT COUNT(*) AS c FROM user_deposits WHERE is_active=1",
            "listen_all": "SELECT COUNT(*) AS c FROM user_settings"
                          " WHERE listen_all=1 AND is_active=1",
            "snipers": "SELECT COUNT(*) AS c FROM user_snipers WHERE is_active=1",
            "sniper_alerts": "SELECT COUNT(*) AS c FROM sniper_alerts",
            "notifications": "SELECT COUNT(*) AS c FROM event_notifications",
        }
        for name, sql in queries.items():
            async with self.db.execute(sql) as cur:
                row = await cur.fetchone()
                counts[name] = row["c"] if row else 0
        return counts
