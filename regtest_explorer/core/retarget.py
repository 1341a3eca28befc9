"""Difficulty retarget projection."""

from datetime import timedelta
import structlog

from regtest_explorer.core.chain_scanner import ChainScanner
from regtest_explorer.core.rpc_client import BitcoinRPCClient
from regtest_explorer.models.blockchain import RetargetProjection
from regtest_explorer.utils.time import get_current_utc

logger = structlog.get_logger(__name__)


class RetargetProjector:
    """Project when the next difficulty adjustment happens and its size.

    The change estimate extrapolates from a handful of recent block times, so
    it is suppressed early in an epoch and clamped otherwise.
    """

    def __init__(self, rpc_client: BitcoinRPCClient, scanner: ChainScanner,
                 interval: int = 2016, target_block_time: int = 600,
                 min_sample: int = 10, sample_size: int = 10,
                 change_min: float = -75.0, change_max: float = 300.0):
        self.rpc_client = rpc_client
        self.scanner = scanner
        self.interval = interval
        self.target_block_time = target_block_time
        self.min_sample = min_sample
        self.sample_size = sample_size
        self.change_min = change_min
        self.change_max = change_max
        self.logger = logger.bind(component="retarget_projector")

    def project(self) -> RetargetProjection:
        info = self.rpc_client.get_blockchain_info()
        height = info['blocks']
        difficulty = float(info.get('difficulty', 0))

        epoch = height // self.interval
        next_height = (epoch + 1) * self.interval
        blocks_in_epoch = height % self.interval

        projection = RetargetProjection(
            current_height=height,
            difficulty=difficulty,
            next_retarget_height=next_height,
            remaining_blocks=next_height - height,
            progress_percent=min(100.0, blocks_in_epoch / self.interval * 100),
            network_hashrate_ths=difficulty * 2 ** 32 / self.target_block_time / 1e12
        )

        if blocks_in_epoch < self.min_sample:
            self.logger.debug("Too few blocks in epoch to project",
                              blocks_in_epoch=blocks_in_epoch)
            return projection

        sample_count = min(self.sample_size, blocks_in_epoch)
        timestamps = sorted(
            block.time
            for block in self.scanner.iter_blocks(sample_count, tip_height=height, verbosity=1)
        )
        if len(timestamps) < 2:
            return projection

        average = (timestamps[-1] - timestamps[0]) / (len(timestamps) - 1)
        change = (self.target_block_time - average) / self.target_block_time * 100

        projection.average_block_time = average
        projection.sample_size = len(timestamps)
        projection.estimated_change_percent = max(self.change_min, min(self.change_max, change))
        projection.estimated_retarget_time = (
            get_current_utc() + timedelta(seconds=projection.remaining_blocks * average)
        )

        self.logger.info("Retarget projected",
                         height=height,
                         next_retarget_height=next_height,
                         average_block_time=average,
                         estimated_change=projection.estimated_change_percent)
        return projection
