from pathlib import Path
import asyncio
import os
import sys

# Ensure repo root is on sys.path and is the working directory.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from app.logging import setup_logging
from app.pipeline.scheduler import start_poller

async def main():
    poller = start_poller()
    if not poller.enabled:
        return
    stopped = asyncio.Event()
    poller.register_signal_handlers(asyncio.get_running_loop(), on_stop=stopped.set)
    await stopped.wait()
    await poller.wait_closed()

if __name__ == '__main__':
    setup_logging()
    asyncio.run(main())
