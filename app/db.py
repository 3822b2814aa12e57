import sqlite3
from pathlib import Path

def get_conn(db_path: str) -> sqlite3.Connection:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    # The poller hands its connection to executor threads; only one tick uses it at a time.
    conn = sqlite3.connect(db_path, isolation_level=None, check_same_thread=False)  # autocommit
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA busy_timeout=5000;")
    return conn

DDL = [
    # Vault accounting snapshots (one row per chain/vault/block)
    """
CREATE TABLE IF NOT EXISTS vault_snapshots (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  chain_id TEXT NOT NULL,
  vault_address TEXT NOT NULL,
  block_number INTEGER NOT NULL,
  block_timestamp TEXT NOT NULL,
  vault_decimals INTEGER NOT NULL,
  total_assets_raw TEXT NOT NULL,   -- base-10 integer, unscaled
  total_supply_raw TEXT NOT NULL,
  share_price_raw TEXT NOT NULL,
  total_assets TEXT NOT NULL,       -- scaled by 10^vault_decimals
  total_supply TEXT NOT NULL,
  share_price TEXT NOT NULL,
  growth_pct TEXT NOT NULL,
  created_at TEXT NOT NULL
);
""",
    "CREATE UNIQUE INDEX IF NOT EXISTS ux_vault_snapshots_block ON vault_snapshots(chain_id, vault_address, block_number);",
    "CREATE INDEX IF NOT EXISTS ix_vault_snapshots_time ON vault_snapshots(chain_id, vault_address, block_timestamp DESC);",
]

def migrate(conn: sqlite3.Connection):
    cur = conn.cursor()
    for stmt in DDL:
        cur.execute(stmt)
