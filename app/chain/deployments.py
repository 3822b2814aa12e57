import json
from pathlib import Path
import structlog

from ..config import settings

log = structlog.get_logger()

def load_deployment(chain_id: str, deployments_dir: str | None = None) -> dict:
    path = Path(deployments_dir or settings.deployments_dir) / f"{chain_id}.json"
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as e:
        # Deployment files are optional; env configuration takes over.
        log.debug("deployment_file_unavailable", chain_id=chain_id, path=str(path), err=str(e))
        return {}
    return data if isinstance(data, dict) else {}

def resolve_vault_address(chain_id: str, deployments_dir: str | None = None) -> str:
    if settings.vault_address:
        return settings.vault_address.strip()
    vault = load_deployment(chain_id, deployments_dir).get("vault")
    return str(vault).strip() if vault else ""
