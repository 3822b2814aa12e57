from pathlib import Path
import asyncio
import os
import signal
import sys
from datetime import datetime, timedelta, timezone

# Ensure repo root is on sys.path and is the working directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
import structlog

from app.config import settings
from app.logging import setup_logging
from app.services.ingest_client import IngestClient, resolve_schedule
from app.utils import parse_bool

log = structlog.get_logger()

async def main():
    if parse_bool(settings.self_ingest_enabled) is False:
        log.info("self_ingest_disabled")
        return
    client = IngestClient(
        settings.ingest_base_url,
        settings.chain_id,
        secret=settings.ingest_secret,
        timeout=settings.ingest_timeout_seconds,
    )
    interval_ms, initial_delay_ms = resolve_schedule(
        settings.self_ingest_interval_ms, settings.self_ingest_initial_delay_ms
    )
    first_run = datetime.now(timezone.utc) + timedelta(milliseconds=initial_delay_ms)
    sched = AsyncIOScheduler(timezone=timezone.utc)
    sched.add_job(
        client.run_tick,
        IntervalTrigger(seconds=interval_ms / 1000, timezone=timezone.utc),
        id="self_ingest",
        next_run_time=first_run,
        coalesce=True,
        replace_existing=True,
    )
    sched.start()
    log.info(
        "self_ingest_enabled",
        chain_id=settings.chain_id,
        ingest_base_url=settings.ingest_base_url,
        initial_delay_ms=initial_delay_ms,
        interval_ms=interval_ms,
    )

    stopped = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stopped.set)
    await stopped.wait()
    sched.shutdown(wait=False)
    log.info("self_ingest_stopped")

if __name__ == '__main__':
    setup_logging()
    asyncio.run(main())
