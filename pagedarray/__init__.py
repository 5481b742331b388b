import asyncio
import logging
import sys
import textwrap
import time

import click
import httpx
import tabulate
from aioconsole import ainput
from tqdm import tqdm

from .pages import PagedArray, PagingError
from .loader import PageLoader
from .sources import MemorySource, HTTPSource, SourceError
from .repl import ReplSyntaxError, parse_args, parse_int, parse_pages
from .utils.asyncio import TaskPool
from .utils.misc import Viewport

logger = logging.getLogger(__name__)

PLACEHOLDER = '...'

HELP = textwrap.dedent("""\
    This is the REPL, and the following commands are available.

    list                       List the visible rows, loading their pages
    next                       Scroll down one window, and list
    prev                       Scroll up one window, and list
    goto <row>                 Scroll to row <row>, and list
    get <index>                Show the element at <index>
    set <index> <value>        Overwrite the element at <index> (page must be loaded)
    add [value]                Append a new element
    delete <index>             Delete the element at <index>
    move <from> <to>           Move the element at <from> to <to>
    load <page>                Load a page and wait for it
    load <p0>,...,<pn>         Load pages <p0> to <pn>
    load <p0>,<p1>,...         Load the specified pages
    unload <page>              Forget a loaded page
    clear                      Cancel all fetches and forget every page
    pages                      Show the state of every page
    preload on|off             Toggle loading the next page ahead of time
    quit                       Leave

    Rows whose page is not loaded yet are shown as ...""")


def render_rows(array, rows):
    table = [(row, array.page_number_for_index(row),
              PLACEHOLDER if (value := array[row]) is None else value)
             for row in rows]

    return tabulate.tabulate(table, headers=['#', 'page', 'element'])


def render_pages(array, loader):
    def state(page):
        if array.is_loaded(page):
            return 'loaded'
        if page in loader.pending:
            return 'loading'
        return '-'

    table = []
    if array.count:
        for page in range(array.start_page, array.last_page + 1):
            indexes = array.indexes_for_page(page)
            table.append((page, f'{indexes.start}-{indexes.stop - 1}', state(page)))

    return tabulate.tabulate(table, headers=['page', 'indexes', 'state'])


def print_error(message):
    print(f"ERROR: {message}", file=sys.stderr)


async def load_pages(array, loader, pages):
    tasks = set()
    for page in pages:
        array.indexes_for_page(page)  # Fail early for bad page numbers.

        if loader.needs_load(page):
            tasks.add(loader.load(page))
        elif task := loader.pending.get(page):
            tasks.add(task)

    with tqdm(total=len(tasks), desc='pages', unit='page') as pbar:
        while tasks:
            done, tasks = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            pbar.update(len(done))


async def repl(array, source, loader, viewport):
    mirror = source if isinstance(source, MemorySource) else None

    def print_rows():
        for row in viewport.visible:
            loader.load_if_needed(row)

        print(render_rows(array, viewport.visible))
        if array.count:
            print(f"(Rows {viewport.visible.start}-{viewport.visible.stop - 1} of {array.count})")
        else:
            print("(Empty)")

    while True:
        try:
            args = parse_args(await ainput('> '))
        except EOFError:
            break
        except ReplSyntaxError as e:
            print_error(e)
            continue

        if len(args) < 1:
            continue

        try:
            match args:
                case ['help']:
                    print(HELP)
                case ['list']:
                    print_rows()
                case ['next']:
                    viewport.next()
                    print_rows()
                case ['prev']:
                    viewport.previous()
                    print_rows()
                case ['goto', row]:
                    viewport.goto(parse_int(row))
                    print_rows()
                case ['get', index]:
                    value = array[parse_int(index)]
                    print(PLACEHOLDER + " (not loaded)" if value is None else value)
                case ['set', index, value]:
                    index = parse_int(index)
                    array[index] = value
                    if mirror:
                        mirror.set(index, value)
                case ['add', *words]:
                    value = ' '.join(words) or f"New content {time.strftime('%Y-%m-%dT%H:%M:%S')}"
                    array.append(value)
                    if mirror:
                        mirror.append(value)
                    print(f"(Added row {array.count - 1})")
                case ['delete', index]:
                    index = parse_int(index)
                    del array[index]
                    if mirror:
                        mirror.delete(index)
                    print(f"(Deleted row {index})")
                case ['move', from_index, to_index]:
                    from_index, to_index = parse_int(from_index), parse_int(to_index)
                    array.move_element(from_index, to_index)
                    if mirror:
                        mirror.move(from_index, to_index)
                case ['load', pages]:
                    await load_pages(array, loader, parse_pages(pages))
                case ['unload', page]:
                    array.remove_page(parse_int(page))
                case ['clear']:
                    loader.cancel_all()
                    array.remove_all_pages()
                    print("(All pages cleared)")
                case ['pages']:
                    print(render_pages(array, loader))
                    print(f"({len(array.loaded_elements)} of {array.count} elements loaded)")
                case ['preload', 'on' | 'off' as flag]:
                    loader.preload = flag == 'on'
                case ['quit' | 'exit']:
                    break
                case [cmd, *_] if cmd in {'goto', 'get', 'set', 'delete', 'move', 'load', 'unload', 'preload'}:
                    print_error(f"Wrong arguments for {cmd}; see help.")
                case [wrong_cmd, *_]:
                    print_error(f"Not a valid command {wrong_cmd}; try again.")
        except (PagingError, ReplSyntaxError, ValueError) as e:
            print_error(e)


async def amain(*, url, count, page_size, start_page, latency,
                preload_margin, preload, rows, concurrency):
    source = HTTPSource(url) if url else MemorySource.generate(count, latency=latency)

    async with source:
        array = PagedArray(await source.count(), page_size, start_page)
        viewport = Viewport(array, rows=rows)

        def on_loaded(page, indexes):
            visible = [row for row in viewport.visible if row in indexes]
            print(f"\n(Page {page} loaded)")
            if visible:
                print(render_rows(array, visible))

        async with TaskPool(maxsize=concurrency) as pool:
            loader = PageLoader(array, source, pool,
                                preload_margin=preload_margin,
                                preload=preload,
                                on_loaded=on_loaded)
            try:
                await repl(array, source, loader, viewport)
            finally:
                loader.cancel_all()


@click.command(context_settings={'auto_envvar_prefix': 'PAGEDARRAY'})
@click.option('--url', help="Endpoint serving pages as JSON; an in-memory datasource is used if omitted.")
@click.option('--count', default=200, show_default=True, type=click.IntRange(min=0),
              help="Number of rows of the in-memory datasource.")
@click.option('--page-size', default=25, show_default=True, type=click.IntRange(min=1))
@click.option('--start-page', default=0, show_default=True)
@click.option('--latency', default=0.5, show_default=True, type=click.FloatRange(min=0),
              help="Simulated fetch duration in seconds.")
@click.option('--preload-margin', default=10, show_default=True, help="How many rows ahead to preload.")
@click.option('--preload/--no-preload', default=True, show_default=True)
@click.option('--rows', default=20, show_default=True, type=click.IntRange(min=1), help="Visible rows.")
@click.option('--concurrency', default=10, show_default=True, type=click.IntRange(min=1))
@click.option('--log-level', default='WARNING', show_default=True,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False))
def main(log_level, **options):
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s : %(levelname)s : %(module)s : %(funcName)s: %(message)s",
        datefmt="%d-%b-%y %H:%M:%S",
    )
    logger.debug("Starting with options %s", options)

    try:
        asyncio.run(amain(**options), debug=log_level.upper() == 'DEBUG')
    except (SourceError, httpx.HTTPError) as e:
        raise click.ClickException(str(e))
