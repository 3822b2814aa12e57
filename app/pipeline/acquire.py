from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import structlog

from .normalize import OnChainSnapshot, RawReads, ReadResult, normalize_snapshot

log = structlog.get_logger()

_READ_WORKERS = 6

def optional_read(fn, *args) -> ReadResult:
    try:
        return ReadResult(value=fn(*args))
    except Exception as e:
        return ReadResult(error=str(e) or e.__class__.__name__)

def read_vault_state(reader, vault_address: str) -> RawReads:
    with ThreadPoolExecutor(max_workers=_READ_WORKERS) as pool:
        network_f = pool.submit(reader.network_id)
        block_f = pool.submit(reader.current_block)
        decimals_f = pool.submit(reader.call_view, vault_address, "decimals")
        assets_f = pool.submit(reader.call_view, vault_address, "totalAssets")
        supply_f = pool.submit(reader.call_view, vault_address, "totalSupply")
        share_price_f = pool.submit(optional_read, reader.call_view, vault_address, "sharePrice")

        block_number = block_f.result()
        timestamp_f = pool.submit(optional_read, reader.block_timestamp, block_number)

        reads = RawReads(
            network_id=network_f.result(),
            block_number=block_number,
            block_timestamp=timestamp_f.result(),
            decimals=decimals_f.result(),
            total_assets_raw=assets_f.result(),
            total_supply_raw=supply_f.result(),
            share_price_raw=share_price_f.result(),
        )

    if not reads.share_price_raw.ok:
        log.debug("share_price_unavailable", vault_address=vault_address, err=reads.share_price_raw.error)
    if not reads.block_timestamp.ok:
        log.warning(
            "block_timestamp_unavailable",
            block_number=block_number,
            err=reads.block_timestamp.error,
        )
    return reads

def collect_onchain_snapshot(reader, chain_id: str, vault_address: str) -> OnChainSnapshot:
    reads = read_vault_state(reader, vault_address)
    return normalize_snapshot(chain_id, vault_address, reads)
