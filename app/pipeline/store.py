from __future__ import annotations

import sqlite3

from ..db import get_conn, migrate
from ..utils import now_utc_iso, parse_int

DEFAULT_LIST_LIMIT = 120
MAX_LIST_LIMIT = 2000

SNAPSHOT_COLUMNS = (
    "id",
    "chain_id",
    "vault_address",
    "block_number",
    "block_timestamp",
    "vault_decimals",
    "total_assets_raw",
    "total_supply_raw",
    "share_price_raw",
    "total_assets",
    "total_supply",
    "share_price",
    "growth_pct",
    "created_at",
)

_UPDATABLE = (
    "block_timestamp",
    "vault_decimals",
    "total_assets_raw",
    "total_supply_raw",
    "share_price_raw",
    "total_assets",
    "total_supply",
    "share_price",
    "growth_pct",
)

_SELECT = f"SELECT {', '.join(SNAPSHOT_COLUMNS)} FROM vault_snapshots"

_UPSERT = f"""
INSERT INTO vault_snapshots (chain_id, vault_address, block_number, {', '.join(_UPDATABLE)}, created_at)
VALUES (?, ?, ?, {', '.join('?' for _ in _UPDATABLE)}, ?)
ON CONFLICT(chain_id, vault_address, block_number) DO UPDATE SET
  {', '.join(f'{col}=excluded.{col}' for col in _UPDATABLE)}
RETURNING {', '.join(SNAPSHOT_COLUMNS)}
"""


def clamp_limit(value, default: int = DEFAULT_LIST_LIMIT, maximum: int = MAX_LIST_LIMIT) -> int:
    parsed = parse_int(value)
    if parsed is None or parsed <= 0:
        return default
    return min(parsed, maximum)


def _row_to_dict(row) -> dict | None:
    if row is None:
        return None
    return {col: row[col] for col in SNAPSHOT_COLUMNS}


class SnapshotStore:
    """sqlite-backed persistence for vault snapshots."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    def open(cls, db_path: str) -> "SnapshotStore":
        conn = get_conn(db_path)
        migrate(conn)
        return cls(conn)

    def upsert(self, chain_id: str, vault_address: str, block_number: int, fields: dict) -> dict:
        """Insert or overwrite the row for (chain_id, vault_address, block_number).

        A single statement, so concurrent writers on the same key cannot leave a
        half-written row; the last writer's fields win. The returned row comes
        from the same statement. created_at is only set on insert.
        """
        missing = [col for col in _UPDATABLE if col not in fields]
        if missing:
            raise ValueError(f"snapshot fields missing: {', '.join(missing)}")
        params = (
            chain_id,
            vault_address,
            int(block_number),
            *[fields[col] for col in _UPDATABLE],
            now_utc_iso(),
        )
        cur = self.conn.execute(_UPSERT, params)
        row = cur.fetchone()
        cur.close()
        return _row_to_dict(row)

    def get(self, chain_id: str, vault_address: str, block_number: int) -> dict | None:
        row = self.conn.execute(
            f"{_SELECT} WHERE chain_id=? AND vault_address=? AND block_number=?",
            (chain_id, vault_address, int(block_number)),
        ).fetchone()
        return _row_to_dict(row)

    def find_earliest(self, chain_id: str, vault_address: str) -> dict | None:
        row = self.conn.execute(
            f"{_SELECT} WHERE chain_id=? AND vault_address=? ORDER BY block_number ASC LIMIT 1",
            (chain_id, vault_address),
        ).fetchone()
        return _row_to_dict(row)

    def list_desc_by_timestamp(self, chain_id: str, vault_address: str, limit: int) -> list[dict]:
        rows = self.conn.execute(
            f"{_SELECT} WHERE chain_id=? AND vault_address=? ORDER BY block_timestamp DESC, block_number DESC LIMIT ?",
            (chain_id, vault_address, int(limit)),
        ).fetchall()
        return [_row_to_dict(row) for row in rows]

    def latest(self, chain_id: str) -> dict | None:
        row = self.conn.execute(
            f"{_SELECT} WHERE chain_id=? ORDER BY block_timestamp DESC, block_number DESC LIMIT 1",
            (chain_id,),
        ).fetchone()
        return _row_to_dict(row)

    def close(self):
        self.conn.close()
