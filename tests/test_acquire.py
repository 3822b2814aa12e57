import unittest

from structlog.testing import capture_logs

from app.pipeline.acquire import collect_onchain_snapshot, optional_read
from fakes import FakeReader


class OptionalReadTests(unittest.TestCase):
    def test_success(self):
        result = optional_read(lambda: 5)
        self.assertTrue(result.ok)
        self.assertEqual(result.value, 5)

    def test_failure_is_captured(self):
        def boom():
            raise RuntimeError("execution reverted")

        result = optional_read(boom)
        self.assertFalse(result.ok)
        self.assertEqual(result.error, "execution reverted")


class CollectSnapshotTests(unittest.TestCase):
    def test_all_reads_issued(self):
        reader = FakeReader(decimals=6, total_assets=2_000_000, total_supply=1_000_000, share_price=2_000_000)
        snap = collect_onchain_snapshot(reader, "11155111", "0xVault")
        self.assertEqual(
            sorted(reader.calls),
            sorted(["network_id", "current_block", "block_timestamp", "decimals", "totalAssets", "totalSupply", "sharePrice"]),
        )
        self.assertLess(reader.calls.index("current_block"), reader.calls.index("block_timestamp"))
        self.assertEqual(snap.block_number, 100)
        self.assertEqual(snap.share_price, "2.0")
        self.assertFalse(snap.share_price_derived)

    def test_missing_share_price_is_derived(self):
        reader = FakeReader(decimals=18, total_assets=5 * 10**18, total_supply=0, share_price=None)
        snap = collect_onchain_snapshot(reader, "1", "0xVault")
        self.assertTrue(snap.share_price_derived)
        self.assertEqual(snap.share_price_raw, 10**18)
        self.assertEqual(snap.share_price, "1.0")

    def test_required_read_failure_aborts(self):
        for name in ("totalAssets", "totalSupply", "decimals", "network_id", "current_block"):
            reader = FakeReader(fail={name})
            with self.assertRaises(RuntimeError, msg=name):
                collect_onchain_snapshot(reader, "1", "0xVault")

    def test_block_timestamp_failure_degrades(self):
        reader = FakeReader(fail={"block_timestamp"}, share_price=10**18)
        with capture_logs() as logs:
            snap = collect_onchain_snapshot(reader, "1", "0xVault")
        self.assertTrue(snap.block_timestamp)
        events = [e["event"] for e in logs]
        self.assertIn("block_timestamp_unavailable", events)


if __name__ == "__main__":
    unittest.main()
