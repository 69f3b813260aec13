import sqlite3
import threading
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Optional

from ...domain.errors import PersistenceError
from ...domain.models import Entitlement, Subscription, SubscriptionStatus
from ...domain.ports.persistence import MergeOutcome, PersistenceGateway


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed implementation of the persistence gateway."""

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS subscriptions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    status_rank INTEGER NOT NULL,
                    plan TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    last_notification TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_subscriptions_user_created
                    ON subscriptions(user_id, created_at DESC);

                CREATE TABLE IF NOT EXISTS entitlements (
                    user_id TEXT PRIMARY KEY,
                    is_subscriber INTEGER NOT NULL DEFAULT 0,
                    subscription_id TEXT,
                    changed_at TEXT NOT NULL
                );
                """
            )

    def close(self) -> None:
        self._conn.close()

    # SubscriptionRepository API ---------------------------------------------
    def create_subscription(
        self,
        subscription_id: str,
        user_id: str,
        plan: str,
        amount: Decimal,
    ) -> Subscription:
        now = self._now()
        status = SubscriptionStatus.PENDING
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """
                    INSERT INTO subscriptions (
                        id, user_id, status, status_rank, plan, amount,
                        last_notification, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, NULL, ?, ?)
                    """,
                    (subscription_id, user_id, status.value, status.rank, plan, str(amount), now, now),
                )
                cur = self._conn.execute("SELECT * FROM subscriptions WHERE id = ?", (subscription_id,))
                row = cur.fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to persist subscription {subscription_id}.") from exc
        if not row:
            raise PersistenceError(f"Failed to persist subscription {subscription_id}.")
        return self._row_to_subscription(row)

    def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM subscriptions WHERE id = ?", (subscription_id,))
            row = cur.fetchone()
        return self._row_to_subscription(row) if row else None

    def get_latest_subscription_for_user(self, user_id: str) -> Optional[Subscription]:
        with self._lock:
            cur = self._conn.execute(
                """
                SELECT * FROM subscriptions
                WHERE user_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT 1
                """,
                (user_id,),
            )
            row = cur.fetchone()
        return self._row_to_subscription(row) if row else None

    def merge_notification(
        self,
        subscription_id: str,
        user_id: Optional[str],
        status: SubscriptionStatus,
        payload: str,
        plan: str,
        amount: Decimal,
    ) -> MergeOutcome:
        now = self._now()
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    """
                    INSERT INTO subscriptions (
                        id, user_id, status, status_rank, plan, amount,
                        last_notification, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        status = excluded.status,
                        status_rank = excluded.status_rank,
                        last_notification = excluded.last_notification,
                        updated_at = excluded.updated_at
                    WHERE (
                        subscriptions.last_notification IS NULL
                        OR subscriptions.last_notification != excluded.last_notification
                    )
                    AND subscriptions.status_rank <= excluded.status_rank
                    """,
                    (
                        subscription_id,
                        user_id,
                        status.value,
                        status.rank,
                        plan,
                        str(amount),
                        payload,
                        now,
                        now,
                    ),
                )
                if cur.rowcount > 0:
                    return MergeOutcome.APPLIED
                cur = self._conn.execute(
                    "SELECT last_notification FROM subscriptions WHERE id = ?",
                    (subscription_id,),
                )
                row = cur.fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to merge notification into {subscription_id}.") from exc
        if row and row["last_notification"] == payload:
            return MergeOutcome.DUPLICATE
        return MergeOutcome.STALE

    # EntitlementRepository API ----------------------------------------------
    def get_entitlement(self, user_id: str) -> Optional[Entitlement]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM entitlements WHERE user_id = ?", (user_id,))
            row = cur.fetchone()
        return self._row_to_entitlement(row) if row else None

    def set_entitlement(
        self,
        user_id: str,
        is_subscriber: bool,
        subscription_id: Optional[str],
    ) -> bool:
        try:
            with self._lock, self._conn:
                cur = self._conn.execute(
                    """
                    INSERT INTO entitlements (user_id, is_subscriber, subscription_id, changed_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        is_subscriber = excluded.is_subscriber,
                        subscription_id = excluded.subscription_id,
                        changed_at = excluded.changed_at
                    WHERE entitlements.is_subscriber != excluded.is_subscriber
                    """,
                    (user_id, int(is_subscriber), subscription_id, self._now()),
                )
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to store entitlement for user {user_id}.") from exc

    # Helpers ---------------------------------------------------------------
    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _row_to_subscription(row: sqlite3.Row) -> Subscription:
        return Subscription(
            id=row["id"],
            user_id=row["user_id"],
            status=SubscriptionStatus(row["status"]),
            plan=row["plan"],
            amount=Decimal(row["amount"]),
            last_notification=row["last_notification"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_entitlement(row: sqlite3.Row) -> Entitlement:
        return Entitlement(
            user_id=row["user_id"],
            is_subscriber=bool(row["is_subscriber"]),
            subscription_id=row["subscription_id"],
            changed_at=datetime.fromisoformat(row["changed_at"]),
        )
