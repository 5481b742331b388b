from asyncio import TaskGroup, Semaphore


class TaskPool(TaskGroup):
    """TaskGroup running at most `maxsize` tasks at once, with tasks optionally tracked by key."""

    def __init__(self, *, maxsize):
        self._semaphore = Semaphore(maxsize)
        self.pending = {}
        super().__init__()

    def create_task(self, coro, *, key=None, **kwargs):
        async def wrapper_coro():
            async with self._semaphore:
                return await coro

        task = super().create_task(wrapper_coro(), **kwargs)
        task.add_done_callback(lambda t: self._close_unstarted(coro, t))

        if key is not None:
            self.pending[key] = task
            task.add_done_callback(lambda t: self._forget(key, t))

        return task

    @staticmethod
    def _close_unstarted(coro, task):
        # Cancelled before the wrapper got to await it; no-op once it ran.
        if task.cancelled():
            coro.close()

    def _forget(self, key, task):
        # A newer task may have taken the key over meanwhile.
        if self.pending.get(key) is task:
            del self.pending[key]

    def cancel(self, key):
        if task := self.pending.pop(key, None):
            task.cancel()

    def cancel_all(self):
        for task in self.pending.values():
            task.cancel()

        self.pending.clear()
