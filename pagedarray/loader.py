import logging

import httpx

from .pages import PagedArray, PagingError
from .sources import SourceError
from .utils.asyncio import TaskPool

logger = logging.getLogger(__name__)


class PageLoader:
    """
    Fetches pages of a PagedArray from a source in the background.

    At most one fetch per page is in flight; finished fetches are installed
    with PagedArray.set_page() from the event loop that runs the pool, which
    makes that loop the array's single writer.
    """

    def __init__(self, array: PagedArray, source, pool: TaskPool, *,
                 preload_margin=10, preload=True, on_loaded=None):
        self.array = array
        self.source = source
        self.pool = pool
        self.preload_margin = preload_margin
        self.preload = preload
        self.on_loaded = on_loaded

    @property
    def pending(self):
        """In-flight fetches keyed by page number."""
        return self.pool.pending

    def needs_load(self, page: int) -> bool:
        return not self.array.is_loaded(page) and page not in self.pool.pending

    def load(self, page: int):
        indexes = self.array.indexes_for_page(page)
        logger.info("Loading indexes %d-%d (page %d)", indexes.start, indexes.stop - 1, page)

        return self.pool.create_task(self._fetch(page, indexes), key=page)

    def load_if_needed(self, row: int):
        current_page = self.array.page_number_for_index(row)
        if self.needs_load(current_page):
            self.load(current_page)

        preload_index = row + self.preload_margin
        if self.preload and preload_index < self.array.count:
            preload_page = self.array.page_number_for_index(preload_index)
            if preload_page > current_page and self.needs_load(preload_page):
                self.load(preload_page)

    def cancel_all(self):
        self.pool.cancel_all()

    async def _fetch(self, page, indexes):
        try:
            data = await self.source.fetch(indexes)
        except (SourceError, httpx.HTTPError) as e:
            logger.error("Fetching page %d failed: %s", page, e)
            return

        # The array may have shrunk or grown while we were waiting.
        if page > self.array.last_page or self.array.indexes_for_page(page) != indexes:
            logger.warning("Discarding stale data for page %d", page)
            return

        try:
            self.array.set_page(page, data)
        except PagingError as e:
            logger.warning("Discarding data for page %d: %s", page, e)
            return

        if self.on_loaded:
            self.on_loaded(page, indexes)
