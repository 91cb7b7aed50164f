"""
Snapshot persistence layer (DuckDB)

Each saved batch becomes a numbered snapshot per account; change detection
reads back the most recent one.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import duckdb

from config import settings
from models.tenant import TenantRecord
from utils.errors import ExternalFetchError
from utils.helpers import generate_id

logger = logging.getLogger(__name__)

_RECORD_COLUMNS = [
    "property",
    "unit",
    "tenant_name",
    "rent_amount",
    "past_due",
    "delinquent_rent",
    "aging_30",
    "aging_60",
    "aging_90",
    "aging_over_90",
    "total_balance",
    "delinquency_notes",
    "lease_end_date",
    "email",
    "phone_number",
]


def record_to_snapshot_row(record: TenantRecord) -> Dict[str, Any]:
    """Insight-shaped (snake_case) row for a merged record"""
    return {
        "property": record.property,
        "unit": record.unit,
        "tenant_name": record.tenant,
        "rent_amount": record.rent_amount,
        "past_due": record.past_due,
        "delinquent_rent": record.delinquent_rent,
        "aging_30": record.aging_30,
        "aging_60": record.aging_60,
        "aging_90": record.aging_90,
        "aging_over_90": record.aging_over_90,
        "total_balance": record.total_balance,
        "delinquency_notes": record.delinquency_notes,
        "lease_end_date": record.lease_end_date,
        "email": record.emails,
        "phone_number": record.phone_numbers,
    }


class SnapshotStore:
    """
    DuckDB-backed store of merged batches, keyed by account
    """

    def __init__(self, db_path: str = None):
        self.db_path = db_path or settings.DATABASE_PATH
        self.conn = None

        if settings.USE_DATABASE:
            self._init_database()

    def _init_database(self):
        """Initialize database and create tables"""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = duckdb.connect(self.db_path)
        self._create_tables()

    def _create_tables(self):
        """Create database tables"""
        if not self.conn:
            return

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS snapshots (
                snapshot_id VARCHAR PRIMARY KEY,
                account_key VARCHAR,
                batch_no INTEGER,
                record_count INTEGER,
                created_at TIMESTAMP
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS snapshot_records (
                snapshot_id VARCHAR,
                position INTEGER,
                property VARCHAR,
                unit VARCHAR,
                tenant_name VARCHAR,
                rent_amount DOUBLE,
                past_due DOUBLE,
                delinquent_rent DOUBLE,
                aging_30 DOUBLE,
                aging_60 DOUBLE,
                aging_90 DOUBLE,
                aging_over_90 DOUBLE,
                total_balance DOUBLE,
                delinquency_notes TEXT,
                lease_end_date VARCHAR,
                email VARCHAR,
                phone_number VARCHAR
            )
        """)

    def _latest_snapshot_id(self, account_key: str) -> Optional[str]:
        row = self.conn.execute("""
            SELECT snapshot_id FROM snapshots
            WHERE account_key = ?
            ORDER BY batch_no DESC
            LIMIT 1
        """, (account_key,)).fetchone()
        return row[0] if row else None

    def save_snapshot(
        self,
        account_key: str,
        records: Iterable[Union[TenantRecord, Dict[str, Any]]],
    ) -> Optional[str]:
        """Persist a merged batch as the account's newest snapshot"""
        if not self.conn:
            return None

        rows = [
            record_to_snapshot_row(
                r if isinstance(r, TenantRecord) else TenantRecord.from_dict(r)
            )
            for r in records
        ]
        snapshot_id = generate_id("snap")
        columns = ", ".join(["snapshot_id", "position"] + _RECORD_COLUMNS)
        placeholders = ", ".join("?" for _ in range(len(_RECORD_COLUMNS) + 2))
        values = [
            [snapshot_id, position] + [row[c] for c in _RECORD_COLUMNS]
            for position, row in enumerate(rows)
        ]

        # Header and records commit together
        self.conn.begin()
        try:
            batch_no = self.conn.execute(
                "SELECT COALESCE(MAX(batch_no), 0) + 1 FROM snapshots WHERE account_key = ?",
                (account_key,),
            ).fetchone()[0]

            self.conn.execute("""
                INSERT INTO snapshots (snapshot_id, account_key, batch_no, record_count, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, (snapshot_id, account_key, batch_no, len(rows), datetime.now()))

            if values:
                self.conn.executemany(
                    f"INSERT INTO snapshot_records ({columns}) VALUES ({placeholders})",
                    values,
                )
            self.conn.commit()
        except Exception:
            logger.error("Saving snapshot for %s failed; rolling back", account_key)
            self.conn.rollback()
            raise

        logger.info("Saved snapshot %s for %s (%d records)", snapshot_id, account_key, len(rows))
        return snapshot_id

    def fetch_prior_snapshot(self, account_key: str) -> List[Dict[str, Any]]:
        """
        Most recent batch for the account as insight-shaped dicts; empty when
        the account has none.

        Raises:
            ExternalFetchError: The database could not be queried.
        """
        if not self.conn:
            return []

        try:
            snapshot_id = self._latest_snapshot_id(account_key)
            if snapshot_id is None:
                return []
            result = self.conn.execute(f"""
                SELECT {", ".join(_RECORD_COLUMNS)} FROM snapshot_records
                WHERE snapshot_id = ?
                ORDER BY position
            """, (snapshot_id,)).fetchall()
        except duckdb.Error as e:
            raise ExternalFetchError(f"Snapshot query failed for {account_key}: {e}") from e

        return [dict(zip(_RECORD_COLUMNS, row)) for row in result]

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            self.conn = None
