"""Fee rate recommendations from node fee estimates."""

import structlog

from regtest_explorer.core.exceptions import BitcoinRPCError
from regtest_explorer.core.rpc_client import BitcoinRPCClient
from regtest_explorer.models.blockchain import FeeRecommendation, FeeTier
from regtest_explorer.utils.bitcoin import (
    btc_per_kvb_to_sat_per_vbyte, format_eta, recommended_sat_per_vbyte
)

logger = structlog.get_logger(__name__)

FAST_TARGET = 1
MEDIUM_TARGET = 3
SLOW_TARGET = 6


class FeeAdvisor:
    """Turn ``estimatesmartfee`` answers into sat/vB recommendations.

    Fee advice never fails: when the node has no estimate (common on a young
    regtest chain) or cannot be asked, the fallback rate is used and the tier
    is marked as not estimated.
    """

    def __init__(self, rpc_client: BitcoinRPCClient, fallback_sat_per_vbyte: int = 1):
        self.rpc_client = rpc_client
        self.fallback_sat_per_vbyte = fallback_sat_per_vbyte
        self.logger = logger.bind(component="fee_advisor")

    def estimate(self, target: int) -> FeeTier:
        """Recommendation for confirmation within ``target`` blocks."""
        if target < 1:
            raise ValueError("confirmation target must be at least 1 block")

        try:
            result = self.rpc_client.estimate_smart_fee(target) or {}
        except BitcoinRPCError as e:
            self.logger.warning("Fee estimate failed, using fallback",
                                target=target,
                                error=str(e))
            return self._fallback(target)

        feerate = result.get('feerate')
        if feerate is None:
            self.logger.info("No fee estimate available, using fallback",
                             target=target,
                             errors=result.get('errors'))
            return self._fallback(target)

        blocks = result.get('blocks') or target
        return FeeTier(
            sat_per_vbyte=recommended_sat_per_vbyte(btc_per_kvb_to_sat_per_vbyte(feerate)),
            blocks=blocks,
            eta=format_eta(blocks),
            estimated=True
        )

    def get_recommendation(self) -> FeeRecommendation:
        return FeeRecommendation(
            fast=self.estimate(FAST_TARGET),
            medium=self.estimate(MEDIUM_TARGET),
            slow=self.estimate(SLOW_TARGET)
        )

    def _fallback(self, target: int) -> FeeTier:
        return FeeTier(
            sat_per_vbyte=recommended_sat_per_vbyte(self.fallback_sat_per_vbyte),
            blocks=target,
            eta=format_eta(target),
            estimated=False
        )
