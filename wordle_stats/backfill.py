import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence

import discord

from .ingest import record_message
from .periods import shift_months
from .stats import ScoreStore

logger = logging.getLogger(__name__)

BATCH_SIZE = 100  # Discord's per-request history limit
PAGE_DELAY_SECONDS = 1.0
HORIZON_MONTHS = 12

FetchPage = Callable[[int, Optional[int]], Awaitable[Sequence]]


class CrawlState(Enum):
    START = "start"
    FETCH = "fetch"
    PROCESS = "process"
    DONE = "done"


@dataclass(frozen=True)
class CrawlReport:
    messages_scanned: int
    scores_recorded: int
    pages: int
    completed: bool
    reached_horizon: bool = False
    error: Optional[BaseException] = None


def channel_page_fetcher(channel: discord.abc.Messageable) -> FetchPage:
    """Adapt a channel's history endpoint to ``fetch_page(limit, before)``.

    Each call issues a single history request and returns messages newest first.
    """

    async def fetch_page(limit: int, before: Optional[int]) -> Sequence[discord.Message]:
        marker = discord.Object(id=before) if before is not None else None
        return [message async for message in channel.history(limit=limit, before=marker)]

    return fetch_page


class BackfillCrawler:
    """One-shot crawl of the channel history back to a one-year horizon.

    The crawl walks pages newest to oldest, records every parsable score it sees,
    and stops at the first message older than the horizon, at an empty page, or at
    a page shorter than ``batch_size``. Full pages are always followed by
    ``page_delay`` seconds of sleep before the next request.
    """

    def __init__(
        self,
        store: ScoreStore,
        fetch_page: FetchPage,
        *,
        batch_size: int = BATCH_SIZE,
        page_delay: float = PAGE_DELAY_SECONDS,
        bot_user_id: int | None = None,
        now: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.fetch_page = fetch_page
        self.batch_size = batch_size
        self.page_delay = page_delay
        self.bot_user_id = bot_user_id
        self._now = now or (lambda: datetime.now(tz=timezone.utc))
        self._sleep = sleep

        self._state = CrawlState.START
        self._horizon: Optional[datetime] = None
        self._cursor: Optional[int] = None
        self._page: Sequence = ()
        self._messages_scanned = 0
        self._scores_recorded = 0
        self._pages = 0
        self._reached_horizon = False
        self._error: Optional[BaseException] = None
        self._report: Optional[CrawlReport] = None

    @property
    def state(self) -> CrawlState:
        return self._state

    @property
    def horizon(self) -> Optional[datetime]:
        return self._horizon

    @property
    def report(self) -> Optional[CrawlReport]:
        return self._report

    async def run(self) -> CrawlReport:
        if self._state is not CrawlState.START:
            raise RuntimeError("Backfill has already run")

        while self._state is not CrawlState.DONE:
            if self._state is CrawlState.START:
                self._start()
            elif self._state is CrawlState.FETCH:
                await self._fetch()
            elif self._state is CrawlState.PROCESS:
                await self._process_page()

        self._report = CrawlReport(
            messages_scanned=self._messages_scanned,
            scores_recorded=self._scores_recorded,
            pages=self._pages,
            completed=self._error is None,
            reached_horizon=self._reached_horizon,
            error=self._error,
        )
        if self._error is None:
            logger.info(
                "Finished backfill: %s messages scanned, %s Wordle scores recorded over %s pages",
                self._messages_scanned,
                self._scores_recorded,
                self._pages,
            )
        return self._report

    def _start(self) -> None:
        self._horizon = shift_months(self._now(), -HORIZON_MONTHS)
        self._cursor = None
        logger.info("Backfilling Wordle scores back to %s", self._horizon.isoformat())
        self._state = CrawlState.FETCH

    async def _fetch(self) -> None:
        try:
            page = await self.fetch_page(self.batch_size, self._cursor)
        except Exception as exc:
            self._error = exc
            logger.exception(
                "Backfill aborted after %s messages scanned and %s scores recorded",
                self._messages_scanned,
                self._scores_recorded,
            )
            self._state = CrawlState.DONE
            return

        page = list(page)
        if not page:
            self._state = CrawlState.DONE
            return
        self._pages += 1
        self._page = page
        self._state = CrawlState.PROCESS

    async def _process_page(self) -> None:
        page = self._page
        self._page = ()
        for message in page:
            if message.created_at < self._horizon:
                logger.info(
                    "Reached messages older than %s (%s messages scanned, %s scores recorded)",
                    self._horizon.isoformat(),
                    self._messages_scanned,
                    self._scores_recorded,
                )
                self._reached_horizon = True
                self._state = CrawlState.DONE
                return

            self._messages_scanned += 1
            if self.bot_user_id is not None and message.author.id == self.bot_user_id:
                continue
            if await record_message(self.store, message):
                self._scores_recorded += 1

        self._cursor = page[-1].id
        logger.info(
            "Processed %s messages, found %s Wordle scores so far...",
            self._messages_scanned,
            self._scores_recorded,
        )

        if len(page) < self.batch_size:
            self._state = CrawlState.DONE
            return

        await self._sleep(self.page_delay)
        self._state = CrawlState.FETCH
