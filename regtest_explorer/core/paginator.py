"""Offset/limit pages of recent transactions."""

import structlog

from regtest_explorer.core.chain_scanner import ChainScanner
from regtest_explorer.core.enricher import TransactionEnricher
from regtest_explorer.models.blockchain import TransactionPage

logger = structlog.get_logger(__name__)


class RecentActivityPaginator:
    """Produce pages of enriched transactions, newest first.

    Each page re-scans from the tip and discards everything before its
    offset, so results always match the current chain. Only transactions on
    the returned page are enriched.
    """

    def __init__(self, scanner: ChainScanner, enricher: TransactionEnricher,
                 max_blocks: int):
        self.scanner = scanner
        self.enricher = enricher
        self.max_blocks = max_blocks
        self.logger = logger.bind(component="recent_activity_paginator")

    def page(self, limit: int, offset: int = 0) -> TransactionPage:
        """Return up to ``limit`` transactions starting ``offset`` from the tip."""
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if offset < 0:
            raise ValueError("offset must not be negative")

        pairs = list(self.scanner.scan(self.max_blocks, max_transactions=offset + limit))
        page_pairs = pairs[offset:]

        transactions = [
            self.enricher.enrich(raw_tx, block) for block, raw_tx in page_pairs
        ]

        self.logger.info("Transaction page built",
                         offset=offset,
                         limit=limit,
                         returned=len(transactions))

        return TransactionPage(
            transactions=transactions,
            offset=offset,
            limit=limit,
            has_more=len(transactions) == limit
        )
