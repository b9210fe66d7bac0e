"""
Paginated coinbase-transaction walker.

The explorer feed is newest-first within and across pages, so pages are
fetched strictly in order and the stop decision for page N is taken before
page N+1 is requested. Stop conditions, checked in this order:

- the page came back with an empty body (an empty first page means "no data");
  a page whose entries all fail validation is not empty
- the page crossed the time boundary (see StopRule)
- the explorer reports currentPageNumber >= totalPageNumber
- max_pages pages have been fetched (hard cap on upstream load)
"""

from __future__ import annotations

from enum import Enum
from typing import AsyncIterator

from tfuel_rewards.explorer.client import ExplorerClient
from tfuel_rewards.explorer.schemas import AccountTxPage
from tfuel_rewards.rewards_logging import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_LIMIT = 50


class StopRule(str, Enum):
    """How a page is judged to have crossed the time boundary."""

    # Windowed mode: the oldest timestamp seen so far (last record) is below the boundary.
    OLDEST_ON_PAGE = "oldest_on_page"
    # Since mode: any record on the page is below the boundary; the rest of the feed is older.
    ANY_RECORD = "any_record"


class StopReason(str, Enum):
    EMPTY_PAGE = "empty_page"
    BOUNDARY = "boundary"
    LAST_PAGE = "last_page"
    MAX_PAGES = "max_pages"


class TransactionWalker:
    """
    Walk one address's coinbase feed page by page.

    Consume with `async for page in walker.pages()`; ingest each page before
    asking for the next one. pages_fetched and stop_reason are set as the walk
    progresses.
    """

    def __init__(
        self,
        explorer: ExplorerClient,
        address: str,
        *,
        boundary_sec: float,
        stop_rule: StopRule,
        page_limit: int = DEFAULT_PAGE_LIMIT,
        max_pages: int = 25,
    ) -> None:
        self.explorer = explorer
        self.address = address
        self.boundary_sec = boundary_sec
        self.stop_rule = stop_rule
        self.page_limit = page_limit
        self.max_pages = max_pages
        self.pages_fetched = 0
        self.stop_reason: StopReason | None = None
        self._oldest_seen: float | None = None

    def _crossed_boundary(self, page: AccountTxPage) -> bool:
        if self.stop_rule is StopRule.ANY_RECORD:
            for record in page.records:
                ts = record.timestamp_sec()
                if ts is not None and ts < self.boundary_sec:
                    return True
            oldest = page.oldest_timestamp()
            return oldest is not None and oldest < self.boundary_sec
        oldest = page.oldest_timestamp()
        if oldest is not None:
            self._oldest_seen = oldest
        return self._oldest_seen is not None and self._oldest_seen < self.boundary_sec

    @staticmethod
    def _is_last_page(page: AccountTxPage, page_number: int) -> bool:
        if page.total_pages is None:
            return False
        current = page.current_page if page.current_page is not None else page_number
        return current >= page.total_pages

    async def pages(self) -> AsyncIterator[AccountTxPage]:
        page_number = 1
        while page_number <= self.max_pages:
            page = await self.explorer.get_coinbase_page(self.address, page_number, self.page_limit)
            self.pages_fetched += 1
            if page.is_empty():
                self.stop_reason = StopReason.EMPTY_PAGE
                break

            yield page

            if self._crossed_boundary(page):
                self.stop_reason = StopReason.BOUNDARY
                break
            if self._is_last_page(page, page_number):
                self.stop_reason = StopReason.LAST_PAGE
                break
            page_number += 1
        else:
            self.stop_reason = StopReason.MAX_PAGES

        logger.debug(
            "tx_walk_finished",
            address=self.address,
            pages_fetched=self.pages_fetched,
            stop_reason=self.stop_reason.value if self.stop_reason else None,
            stop_rule=self.stop_rule.value,
        )
