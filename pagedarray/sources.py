import asyncio

import httpx


class SourceError(Exception):
    pass


class HTTPError(SourceError):
    pass


class MemorySource:
    """In-memory datasource answering every fetch after a fixed delay, like a slow network would."""

    def __init__(self, items, *, latency=0.5):
        self.items = list(items)
        self.latency = latency

    @classmethod
    def generate(cls, n, *, latency=0.5):
        return cls((f'Content data {i}' for i in range(n)), latency=latency)

    async def count(self):
        return len(self.items)

    async def fetch(self, indexes: range):
        await asyncio.sleep(self.latency)

        # Sliced after the delay, so edits made meanwhile are picked up.
        return self.items[indexes.start:indexes.stop]

    def append(self, item):
        self.items.append(item)

    def delete(self, index):
        del self.items[index]

    def move(self, from_index, to_index):
        self.items.insert(to_index, self.items.pop(from_index))

    def set(self, index, item):
        self.items[index] = item

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


class HTTPSource:
    """
    Pages served by an HTTP endpoint.

    The endpoint reports the total length in an `X-Total-Count` header on HEAD,
    and answers `GET ?offset=&limit=` with a JSON array of exactly `limit` items.
    """

    def __init__(self, url: str, *, httpx_args=None):
        httpx_args = httpx_args or {}

        self.url = url
        self.client = httpx.AsyncClient(http2=True, **httpx_args)

    async def count(self):
        r = await self.client.head(self.url)
        if r.status_code != 200:
            raise HTTPError(f"Got status code {r.status_code} for {self.url}")

        if (total := r.headers.get('X-Total-Count')) is None:
            raise SourceError(f"Unable to determine number of items for {self.url}")

        try:
            count = int(total)
        except ValueError:
            count = -1

        if count < 0:
            raise SourceError(f"Invalid X-Total-Count {total!r} for {self.url}")

        return count

    async def fetch(self, indexes: range):
        r = await self.client.get(self.url, params={'offset': indexes.start,
                                                    'limit': len(indexes)})
        if r.status_code != 200:
            raise HTTPError(f"Got status code {r.status_code} for {self.url}")

        try:
            items = r.json()
        except ValueError:
            raise SourceError(f"Response for {indexes} is not valid JSON") from None

        if not isinstance(items, list) or len(items) != len(indexes):
            raise SourceError(f"Expected a list of {len(indexes)} items for {indexes}")

        return items

    async def aclose(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()
