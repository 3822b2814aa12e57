"""Background poller that samples the vault on a fixed interval.

Lifecycle: disabled -> idle <-> running -> stopped. The in-flight flag is only
read and written on the event loop thread; the pipeline itself runs in the
loop's default executor so chain and sqlite I/O never block the loop.
"""
from __future__ import annotations

import asyncio
import signal
import threading
from dataclasses import dataclass
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
import structlog

from ..chain.deployments import resolve_vault_address
from ..chain.reader import ChainReader
from ..config import settings
from ..utils import parse_bool, parse_int
from .ingest import ingest_snapshot
from .store import SnapshotStore

log = structlog.get_logger()

DEFAULT_INTERVAL_MS = 15 * 60 * 1000
MIN_INTERVAL_MS = 60 * 1000
JOB_ID = "vault_snapshot"

_poller: SnapshotPoller | None = None
_poller_lock = threading.Lock()


def resolve_interval_ms(value) -> int:
    parsed = parse_int(value)
    if parsed is None or parsed < MIN_INTERVAL_MS:
        return DEFAULT_INTERVAL_MS
    return parsed


def resolve_enabled(enable_value, disable_value) -> bool:
    if parse_bool(disable_value) is True:
        return False
    explicit = parse_bool(enable_value)
    if explicit is not None:
        return explicit
    return True


@dataclass(frozen=True)
class PollerConfig:
    chain_id: str
    vault_address: str
    rpc_url: str
    interval_ms: int = DEFAULT_INTERVAL_MS
    enabled: bool = True
    db_path: str = "./data/snapshots.db"
    rpc_timeout_seconds: float = 20.0

    @classmethod
    def from_settings(cls, s=None) -> "PollerConfig":
        s = s or settings
        return cls(
            chain_id=s.chain_id,
            vault_address=resolve_vault_address(s.chain_id),
            rpc_url=(s.rpc_url or "").strip(),
            interval_ms=resolve_interval_ms(s.snapshot_interval_ms),
            enabled=resolve_enabled(s.enable_poller, s.disable_poller),
            db_path=s.db_path,
            rpc_timeout_seconds=s.rpc_timeout_seconds,
        )


class SnapshotPoller:
    def __init__(self, config: PollerConfig, reader_factory=None, store_factory=None):
        self.config = config
        self.enabled = False
        self.in_flight = False
        self.stopping = False
        self.store: SnapshotStore | None = None
        self.reader = None
        self._reader_factory = reader_factory or (
            lambda: ChainReader(config.rpc_url, timeout=config.rpc_timeout_seconds)
        )
        self._store_factory = store_factory or (lambda: SnapshotStore.open(config.db_path))
        self._scheduler: AsyncIOScheduler | None = None
        self._current: asyncio.Task | None = None

    @property
    def state(self) -> str:
        if self.stopping:
            return "stopped"
        if not self.enabled:
            return "disabled"
        return "running" if self.in_flight else "idle"

    def start(self) -> "SnapshotPoller":
        """Arm the interval job and fire one tick immediately. Must be called with a running event loop."""
        cfg = self.config
        if not cfg.enabled:
            log.info("snapshot_poller_disabled")
            return self
        if not cfg.rpc_url or not cfg.vault_address:
            log.warning(
                "snapshot_poller_missing_config",
                has_rpc_url=bool(cfg.rpc_url),
                has_vault_address=bool(cfg.vault_address),
            )
            return self

        self.store = self._store_factory()
        self.reader = self._reader_factory()
        self.enabled = True

        self._scheduler = AsyncIOScheduler(timezone=timezone.utc)
        # max_instances > 1 so overlapping fires reach the single-flight check and get logged.
        # No misfire grace: a late first run (slow loop startup) still fires.
        self._scheduler.add_job(
            self._on_timer,
            IntervalTrigger(seconds=cfg.interval_ms / 1000, timezone=timezone.utc),
            id=JOB_ID,
            next_run_time=datetime.now(timezone.utc),
            max_instances=3,
            misfire_grace_time=None,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        log.info(
            "snapshot_poller_started",
            chain_id=cfg.chain_id,
            vault_address=cfg.vault_address,
            interval_ms=cfg.interval_ms,
        )
        return self

    async def _on_timer(self):
        # Returns immediately; the tick lives in a task owned by the poller so
        # that scheduler shutdown cannot cancel it mid-flight.
        self._launch()

    def _launch(self) -> asyncio.Task | None:
        if self.stopping:
            return None
        if self.in_flight:
            log.info("snapshot_tick_skipped", reason="previous_tick_running", chain_id=self.config.chain_id)
            return None
        self.in_flight = True
        self._current = asyncio.get_running_loop().create_task(self._run_tick())
        return self._current

    async def tick(self):
        task = self._launch()
        if task is not None:
            await task

    async def _run_tick(self):
        try:
            await asyncio.get_running_loop().run_in_executor(None, self.run_once)
        except Exception as e:
            log.error(
                "snapshot_tick_failed",
                chain_id=self.config.chain_id,
                vault_address=self.config.vault_address,
                err=str(e) or e.__class__.__name__,
            )
        finally:
            self.in_flight = False
            self._current = None
            if self.stopping:
                self._release_store()

    def run_once(self):
        return ingest_snapshot(self.store, self.reader, self.config.chain_id, self.config.vault_address)

    def stop(self, reason: str = "shutdown"):
        if self.stopping:
            return
        self.stopping = True
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
        draining = self.in_flight
        if not draining:
            self._release_store()
        log.info("snapshot_poller_stopped", reason=reason, draining=draining)

    async def wait_closed(self):
        task = self._current
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    def _release_store(self):
        if self.store is None:
            return
        try:
            self.store.close()
        except Exception as e:
            log.error("snapshot_store_close_failed", err=str(e))
        self.store = None

    def register_signal_handlers(self, loop: asyncio.AbstractEventLoop, on_stop=None):
        def _handle(sig: signal.Signals):
            self.stop(sig.name)
            if on_stop is not None:
                on_stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _handle, sig)


def start_poller(config: PollerConfig | None = None, **kwargs) -> SnapshotPoller:
    """Create and start the process-wide poller once; later calls return the same instance."""
    global _poller
    with _poller_lock:
        if _poller is None:
            _poller = SnapshotPoller(config or PollerConfig.from_settings(), **kwargs)
            _poller.start()
        return _poller


def get_poller() -> SnapshotPoller | None:
    return _poller
