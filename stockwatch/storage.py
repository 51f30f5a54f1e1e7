"""SQLite persistence for tracked products and check history."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from stockwatch.errors import DuplicateProduct, StorageError, StorageWriteFailure
from stockwatch.models import (
    MAX_EVIDENCE_PHRASES,
    CheckRecord,
    Confidence,
    StockStatus,
    TrackedProduct,
)

logger = logging.getLogger(__name__)

# Columns update() is allowed to touch
UPDATABLE_FIELDS = ("name", "brand", "url", "status", "confidence", "evidence_phrases", "last_checked_at")


def _to_db(value):
    if isinstance(value, (StockStatus, Confidence)):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value)[:MAX_EVIDENCE_PHRASES], ensure_ascii=False)
    return value


def _parse_time(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _row_to_product(row: sqlite3.Row) -> TrackedProduct:
    return TrackedProduct(
        id=row["id"],
        name=row["name"],
        brand=row["brand"],
        url=row["url"],
        status=StockStatus(row["status"]),
        confidence=Confidence(row["confidence"]) if row["confidence"] else None,
        evidence_phrases=json.loads(row["evidence_phrases"]) if row["evidence_phrases"] else [],
        last_checked_at=_parse_time(row["last_checked_at"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _row_to_record(row: sqlite3.Row) -> CheckRecord:
    return CheckRecord(
        product_id=row["product_id"],
        status=StockStatus(row["status"]),
        confidence=Confidence(row["confidence"]) if row["confidence"] else None,
        evidence_phrases=tuple(json.loads(row["evidence_phrases"]) if row["evidence_phrases"] else ()),
        checked_at=_parse_time(row["checked_at"]),
    )


class ProductStore:
    """Products and their append-only check history in one SQLite file."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)

    @contextmanager
    def get_connection(self):
        """Context manager for SQLite connection."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables if they don't exist."""
        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS products (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    brand TEXT NOT NULL,
                    url TEXT NOT NULL UNIQUE,
                    status TEXT NOT NULL DEFAULT 'checking',
                    confidence TEXT,
                    evidence_phrases TEXT,
                    last_checked_at TIMESTAMP,
                    created_at TIMESTAMP NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS check_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    product_id INTEGER NOT NULL,
                    status TEXT NOT NULL,
                    confidence TEXT,
                    evidence_phrases TEXT,
                    checked_at TIMESTAMP NOT NULL,
                    FOREIGN KEY (product_id) REFERENCES products (id) ON DELETE CASCADE
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_history_product_checked
                ON check_history(product_id, checked_at)
            """)

    def add_product(self, name: str, brand: str, url: str) -> TrackedProduct:
        """Start tracking a product page. New products always start as `checking`."""
        now = datetime.now(timezone.utc)
        try:
            with self.get_connection() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO products (name, brand, url, status, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (name, brand, url, StockStatus.CHECKING.value, now.isoformat()),
                )
                product_id = cur.lastrowid
        except sqlite3.IntegrityError as e:
            raise DuplicateProduct(f"already tracking {url}") from e
        except sqlite3.Error as e:
            raise StorageWriteFailure(f"could not add {url}: {e}") from e
        logger.info("Tracking %s (%s) as id=%d", name, url, product_id)
        return TrackedProduct(id=product_id, name=name, brand=brand, url=url, created_at=now)

    def get_all(self) -> list[TrackedProduct]:
        """All tracked products in insertion order."""
        try:
            with self.get_connection() as conn:
                rows = conn.execute("SELECT * FROM products ORDER BY id").fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"could not list products: {e}") from e
        return [_row_to_product(row) for row in rows]

    def get_by_id(self, product_id: int) -> TrackedProduct | None:
        try:
            with self.get_connection() as conn:
                row = conn.execute("SELECT * FROM products WHERE id = ?", (product_id,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"could not read product {product_id}: {e}") from e
        return _row_to_product(row) if row else None

    def update(self, product_id: int, **fields) -> bool:
        """
        Write the given fields of one product in a single statement.

        Returns False when no product has that id.
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"cannot update {', '.join(sorted(unknown))}")
        if not fields:
            return True

        names = list(fields)
        assignments = ", ".join(f"{name} = ?" for name in names)
        values = [_to_db(fields[name]) for name in names]
        try:
            with self.get_connection() as conn:
                cur = conn.execute(
                    f"UPDATE products SET {assignments} WHERE id = ?",
                    (*values, product_id),
                )
                changed = cur.rowcount
        except sqlite3.Error as e:
            raise StorageWriteFailure(f"could not update product {product_id}: {e}") from e
        if not changed:
            logger.warning("Update skipped: product %s no longer exists", product_id)
        return bool(changed)

    def append_check_record(self, record: CheckRecord) -> None:
        """Save a check record to the history."""
        try:
            with self.get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO check_history (product_id, status, confidence, evidence_phrases, checked_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        record.product_id,
                        _to_db(record.status),
                        _to_db(record.confidence),
                        _to_db(record.evidence_phrases),
                        _to_db(record.checked_at),
                    ),
                )
        except sqlite3.Error as e:
            raise StorageWriteFailure(f"could not record check for product {record.product_id}: {e}") from e

    def get_history(self, product_id: int, limit: int = 20) -> list[CheckRecord]:
        """Most recent checks for a product, newest first."""
        try:
            with self.get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT * FROM check_history
                    WHERE product_id = ?
                    ORDER BY checked_at DESC, id DESC LIMIT ?
                    """,
                    (product_id, limit),
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"could not read history for product {product_id}: {e}") from e
        return [_row_to_record(row) for row in rows]

    def delete_product(self, product_id: int) -> bool:
        """Stop tracking a product; its check history goes with it."""
        try:
            with self.get_connection() as conn:
                cur = conn.execute("DELETE FROM products WHERE id = ?", (product_id,))
                deleted = cur.rowcount
        except sqlite3.Error as e:
            raise StorageWriteFailure(f"could not delete product {product_id}: {e}") from e
        return bool(deleted)

    def get_stats(self) -> dict[str, int]:
        """Number of products per status, plus the total."""
        stats = {"total": 0, **{status.value: 0 for status in StockStatus}}
        try:
            with self.get_connection() as conn:
                rows = conn.execute(
                    "SELECT status, COUNT(*) AS n FROM products GROUP BY status"
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"could not read stats: {e}") from e
        for row in rows:
            stats[row["status"]] = row["n"]
            stats["total"] += row["n"]
        return stats
