"""
Ticker injection into a host document whose layout we do not own.

Lifecycle (TickerInjector):
- SEARCHING: look for an anchor (ANCHOR_SELECTORS, first match wins). start() tries once
  immediately, then polls every poll_interval for at most max_attempts; when the budget
  runs out the ticker goes to the top of #root / #app / <body> instead.
- INSERTED: the ticker node (marked with TICKER_MARKER) is in the document.
- OBSERVING: start() watches for changes. on_mutation() is the reconcile step: if the
  ticker is gone (SPA re-render), insert again.
Every insertion is a no-op while a marked node exists, so repeated runs never duplicate it.
"""
import asyncio
import enum
import logging
from typing import AsyncIterator

from bs4 import BeautifulSoup, Tag

from bulletin.ticker.feed import fetch_approved_items
from bulletin.ticker.markup import (
    ANCHOR_SELECTORS,
    ROOT_CONTAINER_IDS,
    STYLE_ID,
    TICKER_MARKER,
    Ticker,
    build_ticker,
    render_bar,
    render_style,
)

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.5
MAX_POLL_ATTEMPTS = 20  # ~10 s total


def _style_properties(inline_style: str) -> set[str]:
    return {d.split(":", 1)[0].strip().lower() for d in inline_style.split(";") if ":" in d}


class InjectorState(str, enum.Enum):
    SEARCHING = "searching"
    INSERTED = "inserted"
    OBSERVING = "observing"


class TickerInjector:
    def __init__(
        self,
        document: BeautifulSoup,
        ticker: Ticker,
        *,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        anchor_selectors: tuple[str, ...] = ANCHOR_SELECTORS,
    ):
        self.document = document
        self.ticker = ticker
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.anchor_selectors = anchor_selectors
        self.state = InjectorState.SEARCHING
        self.attempts = 0
        self._task: asyncio.Task | None = None
        self._started = False

    # ---------- Document queries ----------

    def is_present(self) -> bool:
        return self.document.select_one(f"[{TICKER_MARKER}]") is not None

    def find_anchor(self) -> Tag | None:
        for selector in self.anchor_selectors:
            node = self.document.select_one(selector)
            if node is not None:
                return node
        return None

    def find_root(self) -> Tag | None:
        for root_id in ROOT_CONTAINER_IDS:
            node = self.document.find(id=root_id)
            if node is not None:
                return node
        return self.document.body

    # ---------- Insertion ----------

    def _ensure_style(self) -> None:
        if self.document.find(id=STYLE_ID) is not None:
            return
        (self.document.head or self.document).append(render_style(self.document))

    def _mark_inserted(self) -> None:
        self.state = InjectorState.OBSERVING if self._started else InjectorState.INSERTED

    def insert_at_anchor(self) -> bool:
        """True when the ticker is in the document afterwards."""
        if self.is_present():
            self._mark_inserted()
            return True
        anchor = self.find_anchor()
        if anchor is None:
            return False
        self._ensure_style()
        # the bar is absolutely positioned below the anchor
        inline_style = anchor.get("style") or ""
        if "position" not in _style_properties(inline_style):
            anchor["style"] = f"{inline_style.rstrip('; ')}; position: relative" if inline_style.strip() else "position: relative"
        anchor.append(render_bar(self.document, self.ticker))
        logger.info("Ticker inserted into <%s>", anchor.name)
        self._mark_inserted()
        return True

    def insert_fallback(self) -> bool:
        if self.is_present():
            self._mark_inserted()
            return True
        self._ensure_style()
        bar = render_bar(self.document, self.ticker, fallback=True)
        root = self.find_root()
        if root is None:
            self.document.append(bar)
        else:
            root.insert(0, bar)
        logger.info("Ticker inserted at top of %s", f"<{root.name}>" if root is not None else "document")
        self._mark_inserted()
        return True

    def insert(self) -> bool:
        return self.insert_at_anchor() or self.insert_fallback()

    # ---------- Lifecycle ----------

    @property
    def polling(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Try once now; if no anchor yet, poll in the background (see wait())."""
        if self.polling:
            return
        self._started = True
        if self.insert_at_anchor():
            return
        self.attempts = 0
        self._task = asyncio.get_running_loop().create_task(self._poll())

    async def _poll(self) -> None:
        while self.attempts < self.max_attempts:
            await asyncio.sleep(self.poll_interval)
            self.attempts += 1
            if self.insert_at_anchor():
                logger.debug("Ticker anchor found after %s attempts", self.attempts)
                return
        logger.info("No ticker anchor after %s attempts; using fallback container", self.attempts)
        self.insert_fallback()

    async def wait(self) -> None:
        """Until polling has finished (immediately if it never started)."""
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    def stop(self) -> None:
        self._started = False
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def on_mutation(self) -> bool:
        """Reconcile after a document change. Returns True when the ticker had to be re-inserted."""
        if not self._started or self.is_present():
            return False
        self.state = InjectorState.SEARCHING
        logger.debug("Ticker node missing after document change; re-inserting")
        if self.polling:
            # still inside the wait budget: only an anchor will do
            return self.insert_at_anchor()
        return self.insert()

    async def watch(self, changes: AsyncIterator) -> None:
        """Feed every change notification from `changes` into on_mutation() until stopped or exhausted."""
        async for _ in changes:
            if not self._started:
                break
            self.on_mutation()


async def mount_ticker(
    document: BeautifulSoup,
    feed_url: str,
    *,
    session=None,
    poll_interval: float = POLL_INTERVAL_SECONDS,
    max_attempts: int = MAX_POLL_ATTEMPTS,
) -> TickerInjector | None:
    """
    Fetch approved items and start injecting. Returns None (and leaves the document alone)
    when the feed is empty, unreachable or anything else fails.
    """
    try:
        loop = asyncio.get_running_loop()
        items = await loop.run_in_executor(None, lambda: fetch_approved_items(feed_url, session=session))
        ticker = build_ticker(items)
        if ticker is None:
            logger.info("Ticker feed %s is empty; nothing to show", feed_url)
            return None
        injector = TickerInjector(document, ticker, poll_interval=poll_interval, max_attempts=max_attempts)
        await injector.start()
        return injector
    except Exception as e:
        logger.error("Ticker mount failed: %s", e)
        return None
