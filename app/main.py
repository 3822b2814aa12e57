from contextlib import asynccontextmanager
from fastapi import FastAPI
from .logging import setup_logging
from .api.routes import router as api_router
from .pipeline.scheduler import start_poller

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    poller = start_poller()
    app.state.poller = poller
    yield
    poller.stop("shutdown")
    await poller.wait_closed()

app = FastAPI(title="vault-snapshot-service", lifespan=lifespan)
app.include_router(api_router)
