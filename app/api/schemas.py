from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class SnapshotOut(CamelModel):
    id: int
    chain_id: str
    vault_address: str
    block_number: str
    block_timestamp: str
    vault_decimals: int
    total_assets_raw: str
    total_supply_raw: str
    share_price_raw: str
    total_assets: str
    total_supply: str
    share_price: str
    growth_pct: str
    created_at: str

    @field_validator("block_number", mode="before")
    @classmethod
    def _block_as_string(cls, v):
        return str(v)

class IngestResponse(CamelModel):
    ok: bool = True
    chain_id: str
    rpc_chain_id: str
    snapshot: SnapshotOut

class SnapshotSummary(CamelModel):
    growth_pct: float
    first_block_number: Optional[str] = None
    last_block_number: Optional[str] = None

class SnapshotListResponse(CamelModel):
    chain_id: str
    vault_address: str
    count: int
    summary: SnapshotSummary
    snapshots: list[SnapshotOut]
