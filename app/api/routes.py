import hmac
from fastapi import APIRouter, Header, Query
from fastapi.responses import JSONResponse
import structlog

from .schemas import IngestResponse, SnapshotListResponse, SnapshotOut, SnapshotSummary
from ..chain.deployments import resolve_vault_address
from ..chain.reader import ChainReader
from ..config import settings
from ..pipeline.growth import parse_growth_pct
from ..pipeline.ingest import ingest_snapshot
from ..pipeline.scheduler import get_poller
from ..pipeline.store import SnapshotStore, clamp_limit

log = structlog.get_logger()
router = APIRouter()

def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})

def is_authorized(authorization: str | None, cron_secret: str | None) -> bool:
    secret = (settings.ingest_secret or "").strip()
    if not secret:
        return True
    auth = authorization or ""
    token_from_auth = auth[7:].strip() if auth.startswith("Bearer ") else ""
    token_from_header = (cron_secret or "").strip()
    return any(
        token and hmac.compare_digest(token.encode(), secret.encode())
        for token in (token_from_auth, token_from_header)
    )

@router.get(
    '/health',
    summary="Health check",
    description="Returns DB connectivity, the latest stored snapshot and the background poller state.",
    tags=["Health"],
)
def health():
    poller = get_poller()
    try:
        store = SnapshotStore.open(settings.db_path)
        try:
            latest = store.latest(settings.chain_id)
        finally:
            store.close()
    except Exception as e:
        log.error("health_db_failed", err=str(e))
        return _error(503, "Database unavailable.")
    last = None
    if latest:
        last = {
            'blockNumber': str(latest['block_number']),
            'blockTimestamp': latest['block_timestamp'],
            'growthPct': latest['growth_pct'],
        }
    return {
        'ok': True,
        'db': 'ok',
        'chainId': settings.chain_id,
        'poller': poller.state if poller else 'not_started',
        'lastSnapshot': last,
    }

@router.api_route(
    '/ingest',
    methods=["GET", "POST"],
    response_model=IngestResponse,
    summary="Ingest one vault snapshot",
    description=(
        "Reads the vault on-chain, computes growth against the baseline and upserts the snapshot. "
        "Requires the shared ingest secret when one is configured."
    ),
    tags=["Snapshots"],
)
def ingest(
    chain_id: str | None = Query(default=None, alias="chainId"),
    authorization: str | None = Header(default=None),
    x_cron_secret: str | None = Header(default=None),
):
    if not is_authorized(authorization, x_cron_secret):
        return _error(401, "Unauthorized")

    chain_id = chain_id or settings.chain_id
    rpc_url = (settings.rpc_url or "").strip()
    if not rpc_url:
        return _error(500, "RPC URL missing.")
    vault_address = resolve_vault_address(chain_id)
    if not vault_address:
        return _error(400, "Vault address missing in deployment config.")

    try:
        reader = ChainReader(rpc_url, timeout=settings.rpc_timeout_seconds)
        store = SnapshotStore.open(settings.db_path)
        try:
            result = ingest_snapshot(store, reader, chain_id, vault_address, source="http")
        finally:
            store.close()
    except Exception as e:
        log.error("snapshot_ingest_failed", chain_id=chain_id, vault_address=vault_address, err=str(e))
        return _error(500, "Failed to ingest vault snapshot.")

    return IngestResponse(
        chain_id=chain_id,
        rpc_chain_id=result.rpc_chain_id,
        snapshot=SnapshotOut(**result.snapshot),
    )

@router.get(
    '/snapshots',
    response_model=SnapshotListResponse,
    summary="List vault snapshots",
    description="Returns up to `limit` (default 120, max 2000) most recent snapshots, oldest first, with a growth summary.",
    tags=["Snapshots"],
)
def list_snapshots(
    chain_id: str | None = Query(default=None, alias="chainId"),
    limit: str | None = None,
):
    chain_id = chain_id or settings.chain_id
    take = clamp_limit(limit)
    vault_address = resolve_vault_address(chain_id)
    if not vault_address:
        return _error(400, "Vault address missing in deployment config.")

    try:
        store = SnapshotStore.open(settings.db_path)
        try:
            rows_desc = store.list_desc_by_timestamp(chain_id, vault_address, take)
        finally:
            store.close()
    except Exception as e:
        log.error("snapshot_list_failed", chain_id=chain_id, err=str(e))
        return _error(500, "Failed to load vault snapshots.")

    snapshots = [SnapshotOut(**row) for row in reversed(rows_desc)]
    first = snapshots[0] if snapshots else None
    last = snapshots[-1] if snapshots else None
    return SnapshotListResponse(
        chain_id=chain_id,
        vault_address=vault_address,
        count=len(snapshots),
        summary=SnapshotSummary(
            growth_pct=parse_growth_pct(last.growth_pct) if last else 0.0,
            first_block_number=first.block_number if first else None,
            last_block_number=last.block_number if last else None,
        ),
        snapshots=snapshots,
    )
