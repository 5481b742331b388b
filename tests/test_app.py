import asyncio

import pytest

from pagedarray import PLACEHOLDER, load_pages, render_pages, render_rows
from pagedarray.loader import PageLoader
from pagedarray.pages import PageBoundsError, PagedArray
from pagedarray.sources import MemorySource
from pagedarray.utils.asyncio import TaskPool


def test_render_rows_marks_unloaded():
    array = PagedArray(4, 2)
    array.set_page(0, ['a', 'b'])

    lines = render_rows(array, range(4)).splitlines()

    assert lines[2].split() == ['0', '0', 'a']
    assert lines[4].split() == ['2', '1', PLACEHOLDER]


def test_load_pages_waits_for_every_page():
    async def scenario():
        array = PagedArray(50, 10, 1)
        source = MemorySource.generate(50, latency=0)

        async with TaskPool(maxsize=2) as pool:
            loader = PageLoader(array, source, pool)
            await load_pages(array, loader, [2, 3, 4])
            table = render_pages(array, loader)

        return array, table

    array, table = asyncio.run(scenario())

    assert sorted(array.pages) == [2, 3, 4]
    assert array[10] == 'Content data 10'
    assert table.count('loaded') == 3


def test_load_pages_rejects_unknown_page():
    async def scenario():
        array = PagedArray(50, 10)
        source = MemorySource.generate(50, latency=0)

        async with TaskPool(maxsize=2) as pool:
            loader = PageLoader(array, source, pool)
            with pytest.raises(PageBoundsError):
                await load_pages(array, loader, [7])

            return loader.pending

    assert asyncio.run(scenario()) == {}
