import logging

from functools import reduce as _reduce
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)


class PagingError(Exception):
    pass


class PageBoundsError(PagingError, IndexError):
    pass


class PageSizeError(PagingError, ValueError):
    pass


class PageNotLoadedError(PagingError):
    def __init__(self, page):
        self.page = page

        super().__init__(f"Page {page} is not loaded")


class PagedArray:
    """
    Ordered collection of `count` elements of which only some pages are resident.

    Reading a position whose page is not loaded gives None; pages are put in
    place with set_page() once the caller has fetched them.
    """

    def __init__(self, count: int, page_size: int, start_page: int = 0):
        if page_size <= 0:
            raise ValueError(f"Page size must be positive, got {page_size}")
        if count < 0:
            raise ValueError(f"Count can't be negative, got {count}")

        self.page_size = page_size
        self.start_page = start_page
        self._count = count
        self._pages = {}

    @property
    def count(self) -> int:
        """Total number of elements, including the ones not loaded."""
        return self._count

    @count.setter
    def count(self, value: int):
        if value < 0:
            raise ValueError(f"Count can't be negative, got {value}")

        self._count = value

        # Drop whatever no longer fits: pages past the end, and the pages
        # whose expected length changed with the new count.
        for page in sorted(self._pages):
            if page > self.last_page or len(self._pages[page]) != len(self.indexes_for_page(page)):
                logger.debug("Evicting page %d after count changed to %d", page, value)
                del self._pages[page]

    @property
    def pages(self):
        """Read-only view of the loaded pages, keyed by page number."""
        return MappingProxyType(self._pages)

    @property
    def last_page(self) -> int:
        if self._count == 0:
            return self.start_page

        last = self._count // self.page_size + self.start_page
        if self._count % self.page_size == 0:
            last -= 1

        return max(last, self.start_page)

    @property
    def loaded_elements(self) -> List[Any]:
        """Everything currently resident, in page order."""
        result = []
        for page in range(self.start_page, self.last_page + 1):
            if (elements := self._pages.get(page)) is not None:
                result.extend(elements)

        return result

    def page_number_for_index(self, index: int) -> int:
        if not 0 <= index <= self._count:
            raise PageBoundsError(f"Index {index} out of bounds")

        return index // self.page_size + self.start_page

    def indexes_for_page(self, page: int) -> range:
        if not self.start_page <= page <= self.last_page:
            raise PageBoundsError(f"Page index {page} out of bounds")

        start = (page - self.start_page) * self.page_size
        if page == self.last_page:
            end = self._count
        else:
            end = start + self.page_size

        return range(start, end)

    def is_loaded(self, page: int) -> bool:
        return page in self._pages

    def elements_for_page(self, page: int) -> Optional[List[Any]]:
        elements = self._pages.get(page)
        return list(elements) if elements is not None else None

    def set_page(self, page: int, elements: Iterable[Any]):
        """Replace the contents of a page, typically with freshly fetched data."""
        expected = len(self.indexes_for_page(page))
        elements = list(elements)

        if len(elements) != expected:
            raise PageSizeError(f"Invalid elements count {len(elements)} for page {page}, expected {expected}")

        self._pages[page] = elements

    def remove_page(self, page: int):
        self._pages.pop(page, None)

    def remove_all_pages(self):
        self._pages.clear()

    def get(self, index: int) -> Optional[Any]:
        page = self._checked_page(index)
        elements = self._pages.get(page)
        if elements is None:
            return None

        return elements[index % self.page_size]

    def set(self, index: int, value: Any):
        page = self._checked_page(index)
        self._require_page(page)[index % self.page_size] = value

    def append(self, value: Any):
        page = self.page_number_for_index(self._count)

        if self._count % self.page_size == 0:
            self._pages[page] = [value]
        elif (elements := self._pages.get(page)) is not None:
            elements.append(value)

        self.count = self._count + 1

    def delete_at_index(self, index: int):
        page = self._checked_page(index)
        self._require_page(page).pop(index % self.page_size)

        # Shift everything after the hole one slot left, one page at a time.
        for current in range(page, self.last_page):
            elements = self._pages.get(current)
            donor = self._pages.get(current + 1)

            if donor:
                pulled = donor.pop(0)
                if elements is not None:
                    elements.append(pulled)

            if elements is not None and len(elements) < self.page_size:
                logger.debug("Evicting page %d, left with %d elements", current, len(elements))
                del self._pages[current]

        self.count = self._count - 1

    def move_element(self, from_index: int, to_index: int):
        if from_index == to_index:
            return

        from_page = self._checked_page(from_index)
        to_page = self._checked_page(to_index)

        low, high = sorted((from_page, to_page))
        for page in range(low, high + 1):
            self._require_page(page)

        element = self._pages[from_page].pop(from_index % self.page_size)

        if from_page > to_page:
            for page in range(from_page - 1, to_page, -1):
                self._pages[page + 1].insert(0, self._pages[page].pop())

            self._pages[to_page].insert(to_index % self.page_size, element)
            self._pages[to_page + 1].insert(0, self._pages[to_page].pop())
        else:
            for page in range(from_page, to_page):
                self._pages[page].append(self._pages[page + 1].pop(0))

            self._pages[to_page].insert(to_index % self.page_size, element)

    def map(self, transform: Callable[[Optional[Any]], Any]) -> List[Any]:
        return [transform(element) for element in self]

    def filter(self, include: Callable[[Optional[Any]], bool]) -> List[Optional[Any]]:
        return [element for element in self if include(element)]

    def reduce(self, combine: Callable[[Any, Optional[Any]], Any], initial: Any) -> Any:
        return _reduce(combine, self, initial)

    def _checked_page(self, index: int) -> int:
        if not 0 <= index < self._count:
            raise PageBoundsError(f"Index {index} out of bounds")

        return self.page_number_for_index(index)

    def _require_page(self, page: int) -> List[Any]:
        elements = self._pages.get(page)
        if elements is None:
            raise PageNotLoadedError(page)

        return elements

    def _normalize(self, index: int) -> int:
        normalized = index + self._count if index < 0 else index
        if not 0 <= normalized < self._count:
            raise PageBoundsError(f"Index {index} out of bounds")

        return normalized

    def __len__(self):
        return self._count

    def __iter__(self) -> Iterator[Optional[Any]]:
        if self._count == 0:
            return

        for page in range(self.start_page, self.last_page + 1):
            elements = self._pages.get(page)
            if elements is not None:
                yield from elements
            else:
                yield from (None for _ in self.indexes_for_page(page))

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self.get(i) for i in range(*index.indices(self._count))]

        return self.get(self._normalize(index))

    def __setitem__(self, index, value):
        self.set(self._normalize(index), value)

    def __delitem__(self, index):
        self.delete_at_index(self._normalize(index))

    def __str__(self):
        return f"PagedArray({list(self)})"

    def __repr__(self):
        return (f"PagedArray(count={self._count}, page_size={self.page_size}, "
                f"start_page={self.start_page}, pages={self._pages})")
