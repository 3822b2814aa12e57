import time
from dataclasses import dataclass
import structlog

from .acquire import collect_onchain_snapshot
from .growth import compute_growth_pct
from .normalize import OnChainSnapshot
from .store import SnapshotStore

log = structlog.get_logger()


@dataclass(frozen=True)
class IngestResult:
    snapshot: dict
    rpc_chain_id: str


def persist_snapshot(store: SnapshotStore, onchain: OnChainSnapshot) -> dict:
    first = store.find_earliest(onchain.chain_id, onchain.vault_address)
    baseline = first["total_assets"] if first else None
    growth_pct = compute_growth_pct(onchain.total_assets, baseline)
    return store.upsert(
        onchain.chain_id,
        onchain.vault_address,
        onchain.block_number,
        {
            "block_timestamp": onchain.block_timestamp,
            "vault_decimals": onchain.vault_decimals,
            "total_assets_raw": str(onchain.total_assets_raw),
            "total_supply_raw": str(onchain.total_supply_raw),
            "share_price_raw": str(onchain.share_price_raw),
            "total_assets": onchain.total_assets,
            "total_supply": onchain.total_supply,
            "share_price": onchain.share_price,
            "growth_pct": growth_pct,
        },
    )


def ingest_snapshot(store: SnapshotStore, reader, chain_id: str, vault_address: str, source: str = "poller") -> IngestResult:
    """Read the vault once, derive the snapshot and upsert it. Errors propagate to the caller."""
    started = time.monotonic()
    onchain = collect_onchain_snapshot(reader, chain_id, vault_address)
    saved = persist_snapshot(store, onchain)
    log.info(
        "snapshot_stored",
        source=source,
        chain_id=onchain.chain_id,
        rpc_chain_id=onchain.rpc_chain_id,
        vault_address=onchain.vault_address,
        block_number=str(onchain.block_number),
        snapshot_id=saved["id"],
        total_assets=onchain.total_assets,
        share_price_derived=onchain.share_price_derived,
        growth_pct=saved["growth_pct"],
        elapsed_sec=round(time.monotonic() - started, 2),
    )
    return IngestResult(snapshot=saved, rpc_chain_id=onchain.rpc_chain_id)
