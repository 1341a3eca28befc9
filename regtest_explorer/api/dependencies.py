"""Shared FastAPI dependencies."""

from typing import Any, Dict

from fastapi import HTTPException, status

from regtest_explorer.core.explorer import BlockExplorer
from regtest_explorer.models.config import ExplorerConfig

# Populated by the application lifespan
app_state: Dict[str, Any] = {
    "config": None,
    "explorer": None,
    "startup_time": None
}


def get_explorer() -> BlockExplorer:
    """Get the block explorer."""
    explorer = app_state.get("explorer")
    if not explorer:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Explorer not initialized"
        )
    return explorer


def get_config() -> ExplorerConfig:
    """Get application settings."""
    config = app_state.get("config")
    if not config:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Settings not initialized"
        )
    return config
