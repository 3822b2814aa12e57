from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..utils import epoch_to_utc_iso, now_utc_iso

DEFAULT_DECIMALS = 18
MAX_DECIMALS = 255  # uint8


@dataclass(frozen=True)
class ReadResult:
    """Outcome of an optional chain read: either a value or the error that replaced it."""
    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None


@dataclass(frozen=True)
class RawReads:
    network_id: int
    block_number: int
    block_timestamp: ReadResult
    decimals: Any
    total_assets_raw: int
    total_supply_raw: int
    share_price_raw: ReadResult


@dataclass(frozen=True)
class OnChainSnapshot:
    chain_id: str
    rpc_chain_id: str
    vault_address: str
    block_number: int
    block_timestamp: str
    vault_decimals: int
    total_assets_raw: int
    total_supply_raw: int
    share_price_raw: int
    share_price_derived: bool
    total_assets: str
    total_supply: str
    share_price: str


def normalize_decimals(value) -> int:
    if isinstance(value, bool):
        return DEFAULT_DECIMALS
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return DEFAULT_DECIMALS
    else:
        return DEFAULT_DECIMALS
    if parsed < 0 or parsed > MAX_DECIMALS:
        return DEFAULT_DECIMALS
    return parsed


def format_units(raw: int, decimals: int) -> str:
    """Render a fixed-point integer with `decimals` implied places, e.g. (1500000, 6) -> "1.5"."""
    sign = "-" if raw < 0 else ""
    whole, frac = divmod(abs(int(raw)), 10 ** decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac_str or '0'}"


def derive_share_price_raw(total_assets_raw: int, total_supply_raw: int, decimals: int) -> int:
    scale = 10 ** decimals
    if total_supply_raw == 0:
        # No shares minted yet: one share is worth one unit of the asset.
        return scale
    return (total_assets_raw * scale) // total_supply_raw


def normalize_snapshot(chain_id: str, vault_address: str, reads: RawReads) -> OnChainSnapshot:
    decimals = normalize_decimals(reads.decimals)
    assets_raw = int(reads.total_assets_raw)
    supply_raw = int(reads.total_supply_raw)

    derived = not reads.share_price_raw.ok
    if derived:
        share_price_raw = derive_share_price_raw(assets_raw, supply_raw, decimals)
    else:
        share_price_raw = int(reads.share_price_raw.value)

    if reads.block_timestamp.ok:
        block_timestamp = epoch_to_utc_iso(reads.block_timestamp.value)
    else:
        block_timestamp = now_utc_iso()

    return OnChainSnapshot(
        chain_id=chain_id,
        rpc_chain_id=str(reads.network_id),
        vault_address=vault_address,
        block_number=int(reads.block_number),
        block_timestamp=block_timestamp,
        vault_decimals=decimals,
        total_assets_raw=assets_raw,
        total_supply_raw=supply_raw,
        share_price_raw=share_price_raw,
        share_price_derived=derived,
        total_assets=format_units(assets_raw, decimals),
        total_supply=format_units(supply_raw, decimals),
        share_price=format_units(share_price_raw, decimals),
    )
