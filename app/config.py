from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field

# Load .env from repo root for local development and scripts.
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(dotenv_path=ENV_PATH)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)
    rpc_url: str | None = Field(default=None, validation_alias=AliasChoices("VAULT_RPC_URL", "RPC_URL"))
    vault_address: str | None = Field(default=None, alias="VAULT_ADDRESS")
    chain_id: str = Field(default="11155111", alias="VAULT_CHAIN_ID")
    deployments_dir: str = Field(default="./cache/deployments", alias="DEPLOYMENTS_DIR")
    rpc_timeout_seconds: float = Field(default=20.0, alias="RPC_TIMEOUT_SECONDS")
    # Kept as raw strings; the poller applies its own parsing and fallbacks.
    snapshot_interval_ms: str | None = Field(default=None, alias="SNAPSHOT_INTERVAL_MS")
    enable_poller: str | None = Field(default=None, alias="ENABLE_SNAPSHOT_POLLER")
    disable_poller: str | None = Field(default=None, alias="DISABLE_SNAPSHOT_POLLER")
    ingest_secret: str | None = Field(default=None, validation_alias=AliasChoices("INGEST_SECRET", "CRON_SECRET"))
    db_path: str = Field(default="./data/snapshots.db", alias="DB_PATH")
    ingest_base_url: str = Field(default="http://127.0.0.1:8000", alias="INGEST_BASE_URL")
    ingest_timeout_seconds: float = Field(default=45.0, alias="INGEST_TIMEOUT_SECONDS")
    self_ingest_enabled: str = Field(default="true", alias="SELF_INGEST_ENABLED")
    self_ingest_interval_ms: str | None = Field(default=None, alias="SELF_INGEST_INTERVAL_MS")
    self_ingest_initial_delay_ms: str | None = Field(default=None, alias="SELF_INGEST_INITIAL_DELAY_MS")

settings = Settings()
