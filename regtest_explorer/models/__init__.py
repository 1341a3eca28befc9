"""Data models and configuration."""

from regtest_explorer.models.config import ExplorerConfig
from regtest_explorer.models.blockchain import (
    RawBlock, RawTransaction, EnrichedTransaction, AddressView,
    FeeRecommendation, RetargetProjection
)

__all__ = [
    "ExplorerConfig",
    "RawBlock",
    "RawTransaction",
    "EnrichedTransaction",
    "AddressView",
    "FeeRecommendation",
    "RetargetProjection",
]
