import asyncio
import inspect

import pytest

from pagedarray.repl import ReplSyntaxError, parse_args, parse_int, parse_pages
from pagedarray.utils.asyncio import TaskPool
from pagedarray.utils.misc import Viewport


def test_parse_args_splits_on_spaces():
    assert parse_args('move  3 4 ') == ['move', '3', '4']
    assert parse_args('') == []


def test_parse_args_quotes():
    assert parse_args('set 3 "hello world"') == ['set', '3', 'hello world']
    assert parse_args('set 3 ""') == ['set', '3', '']
    assert parse_args(r'add "say \"hi\""') == ['add', 'say "hi"']


def test_parse_args_bad_escape():
    with pytest.raises(ReplSyntaxError) as excinfo:
        parse_args(r'add "\n"')

    assert excinfo.value.column == 6


def test_parse_args_unterminated_quote():
    with pytest.raises(ReplSyntaxError) as excinfo:
        parse_args('add "oops')

    assert excinfo.value.column == 4


def test_parse_int():
    assert parse_int('12') == 12

    with pytest.raises(ReplSyntaxError):
        parse_int('twelve')
    with pytest.raises(ReplSyntaxError):
        parse_int('...')


def test_parse_pages():
    assert parse_pages('3') == [3]
    assert parse_pages('1,4,7') == [1, 4, 7]
    assert parse_pages('2,...,5') == [2, 3, 4, 5]

    with pytest.raises(ReplSyntaxError):
        parse_pages('5,...,2')
    with pytest.raises(ReplSyntaxError):
        parse_pages('1,...')


def test_viewport_scrolls_and_wraps():
    viewport = Viewport(list(range(45)), rows=20)

    assert viewport.visible == range(0, 20)
    viewport.next()
    assert viewport.visible == range(20, 40)
    viewport.next()
    assert viewport.visible == range(25, 45)
    viewport.next()
    assert viewport.visible == range(0, 20)
    viewport.previous()
    assert viewport.visible == range(25, 45)


def test_viewport_follows_shrinking_collection():
    items = list(range(45))
    viewport = Viewport(items, rows=20)
    viewport.goto(30)
    del items[10:]

    assert viewport.visible == range(0, 10)


def test_viewport_goto_out_of_bounds():
    viewport = Viewport(list(range(5)), rows=20)
    with pytest.raises(ValueError):
        viewport.goto(5)


def test_task_pool_limits_concurrency():
    running = 0
    peak = 0

    async def job():
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1

    async def scenario():
        async with TaskPool(maxsize=2) as pool:
            for key in range(5):
                pool.create_task(job(), key=key)

            assert sorted(pool.pending) == [0, 1, 2, 3, 4]

        return pool

    pool = asyncio.run(scenario())

    assert peak == 2
    assert pool.pending == {}


def test_task_pool_cancel():
    async def scenario():
        async with TaskPool(maxsize=1) as pool:
            slow = pool.create_task(asyncio.sleep(10), key='slow')
            queued = pool.create_task(asyncio.sleep(10), key='queued')
            await asyncio.sleep(0)

            pool.cancel('slow')
            pool.cancel('queued')
            pool.cancel('unknown')

        return slow, queued

    slow, queued = asyncio.run(scenario())

    assert slow.cancelled()
    assert queued.cancelled()


def test_viewport_visible_does_not_scroll():
    items = list(range(45))
    viewport = Viewport(items, rows=20)
    viewport.goto(25)
    del items[30:]

    assert viewport.visible == range(10, 30)
    assert viewport.top == 25

    viewport.clamp()
    assert viewport.top == 10


def test_task_pool_cancel_before_start_closes_coroutine():
    async def work():
        await asyncio.sleep(10)

    async def scenario():
        async with TaskPool(maxsize=1) as pool:
            coros = [work(), work()]
            for key, coro in enumerate(coros):
                pool.create_task(coro, key=key)
            pool.cancel_all()

        return coros

    coros = asyncio.run(scenario())

    assert [inspect.getcoroutinestate(coro) for coro in coros] == ['CORO_CLOSED'] * 2
