from __future__ import annotations
import time
import httpx
import structlog

from ..utils import parse_int

log = structlog.get_logger()

DEFAULT_INTERVAL_MS = 15 * 60 * 1000
DEFAULT_INITIAL_DELAY_MS = 30 * 1000

def resolve_schedule(interval_value, initial_delay_value) -> tuple[int, int]:
    """(interval_ms, initial_delay_ms); unparsable or out-of-range values fall back to the defaults."""
    interval_ms = parse_int(interval_value, DEFAULT_INTERVAL_MS)
    if interval_ms <= 0:
        interval_ms = DEFAULT_INTERVAL_MS
    initial_delay_ms = parse_int(initial_delay_value, DEFAULT_INITIAL_DELAY_MS)
    if initial_delay_ms < 0:
        initial_delay_ms = DEFAULT_INITIAL_DELAY_MS
    return interval_ms, initial_delay_ms

class IngestClient:
    """Calls the ingest endpoint of a running service; used by the self-scheduling process."""

    def __init__(self, base_url: str, chain_id: str, secret: str | None = None, timeout: float = 45.0, transport=None):
        self.base = base_url.rstrip("/")
        self.chain_id = chain_id
        self.secret = secret or ""
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict:
        return {"x-cron-secret": self.secret} if self.secret else {}

    async def run_tick(self) -> dict:
        """One ingest call. Failures are logged and reported, never raised; the next interval retries."""
        started = time.monotonic()
        url = f"{self.base}/ingest"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(url, params={"chainId": self.chain_id}, headers=self._headers())
        except httpx.HTTPError as e:
            duration_ms = int((time.monotonic() - started) * 1000)
            log.error(
                "self_ingest_tick_failed",
                duration_ms=duration_ms,
                err=str(e) or e.__class__.__name__,
            )
            return {"ok": False, "status": None, "duration_ms": duration_ms}

        try:
            body = r.json()
        except ValueError:
            body = r.text[:500]
        duration_ms = int((time.monotonic() - started) * 1000)
        ok = r.is_success
        event = log.info if ok else log.warning
        event("self_ingest_tick", ok=ok, status=r.status_code, duration_ms=duration_ms, response=body)
        return {"ok": ok, "status": r.status_code, "duration_ms": duration_ms, "response": body}
