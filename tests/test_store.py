import os
import tempfile
import unittest

from app.pipeline.store import SnapshotStore, clamp_limit


def _fields(total_assets="1.0", ts="2026-01-01T00:00:00+00:00", growth="0.00000000"):
    return {
        "block_timestamp": ts,
        "vault_decimals": 18,
        "total_assets_raw": "1000000000000000000",
        "total_supply_raw": "1000000000000000000",
        "share_price_raw": "1000000000000000000",
        "total_assets": total_assets,
        "total_supply": "1.0",
        "share_price": "1.0",
        "growth_pct": growth,
    }


class SnapshotStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = SnapshotStore.open(os.path.join(self.tmp.name, "snapshots.db"))

    def tearDown(self):
        self.store.close()
        self.tmp.cleanup()

    def _count(self):
        return self.store.conn.execute("SELECT COUNT(*) FROM vault_snapshots").fetchone()[0]

    def test_upsert_same_block_keeps_one_row(self):
        first = self.store.upsert("1", "0xVault", 10, _fields(total_assets="1.0"))
        second = self.store.upsert("1", "0xVault", 10, _fields(total_assets="2.5", growth="150.00000000"))
        self.assertEqual(self._count(), 1)
        self.assertEqual(second["id"], first["id"])
        self.assertEqual(second["total_assets"], "2.5")
        self.assertEqual(second["growth_pct"], "150.00000000")
        self.assertEqual(second["created_at"], first["created_at"])

    def test_upsert_returns_own_write_across_connections(self):
        other = SnapshotStore.open(os.path.join(self.tmp.name, "snapshots.db"))
        self.addCleanup(other.close)
        first = self.store.upsert("1", "0xVault", 10, _fields(total_assets="1.0", growth="0.00000000"))
        second = other.upsert("1", "0xVault", 10, _fields(total_assets="2.0", growth="100.00000000"))
        third = self.store.upsert("1", "0xVault", 10, _fields(total_assets="3.0", growth="200.00000000"))
        self.assertEqual((second["total_assets"], second["growth_pct"]), ("2.0", "100.00000000"))
        self.assertEqual((third["total_assets"], third["growth_pct"]), ("3.0", "200.00000000"))
        self.assertEqual({first["id"], second["id"], third["id"]}, {first["id"]})
        self.assertEqual(third["created_at"], first["created_at"])
        self.assertEqual(self._count(), 1)

    def test_key_includes_chain_and_vault(self):
        self.store.upsert("1", "0xVault", 10, _fields())
        self.store.upsert("2", "0xVault", 10, _fields())
        self.store.upsert("1", "0xOther", 10, _fields())
        self.assertEqual(self._count(), 3)

    def test_upsert_requires_all_fields(self):
        fields = _fields()
        del fields["growth_pct"]
        with self.assertRaises(ValueError):
            self.store.upsert("1", "0xVault", 10, fields)

    def test_find_earliest_by_block_not_insert_order(self):
        self.store.upsert("1", "0xVault", 30, _fields(total_assets="3.0"))
        self.store.upsert("1", "0xVault", 10, _fields(total_assets="1.0"))
        self.store.upsert("1", "0xVault", 20, _fields(total_assets="2.0"))
        earliest = self.store.find_earliest("1", "0xVault")
        self.assertEqual(earliest["block_number"], 10)
        self.assertEqual(earliest["total_assets"], "1.0")
        self.assertIsNone(self.store.find_earliest("1", "0xMissing"))

    def test_list_desc_by_timestamp(self):
        for block, ts in ((1, "2026-01-01T00:00:00+00:00"), (2, "2026-01-03T00:00:00+00:00"), (3, "2026-01-02T00:00:00+00:00")):
            self.store.upsert("1", "0xVault", block, _fields(ts=ts))
        rows = self.store.list_desc_by_timestamp("1", "0xVault", 2)
        self.assertEqual([r["block_number"] for r in rows], [2, 3])


class ClampLimitTests(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(clamp_limit(None), 120)
        self.assertEqual(clamp_limit(""), 120)
        self.assertEqual(clamp_limit("abc"), 120)
        self.assertEqual(clamp_limit("0"), 120)

    def test_bounds(self):
        self.assertEqual(clamp_limit("5000"), 2000)
        self.assertEqual(clamp_limit("1"), 1)
        self.assertEqual(clamp_limit(50), 50)


if __name__ == "__main__":
    unittest.main()
