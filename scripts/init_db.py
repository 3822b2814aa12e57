from pathlib import Path
import os
import sys

# Ensure repo root is on sys.path and is the working directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from app.config import settings
from app.pipeline.store import SnapshotStore

if __name__ == '__main__':
    store = SnapshotStore.open(settings.db_path)
    count = store.conn.execute("SELECT COUNT(*) FROM vault_snapshots").fetchone()[0]
    store.close()
    print('DB ready at', settings.db_path, '| snapshot rows:', count)
