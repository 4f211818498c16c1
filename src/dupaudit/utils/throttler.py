import asyncio
from asyncio import Semaphore, TaskGroup
from typing import Any, Coroutine


class Throttler:
    """Limits how many tasks of a TaskGroup run at the same time.

    schedule() waits for a free slot before creating the task, so a producer
    loop feeding thousands of files never has more than `concurrency` tasks in
    flight. The slot is released when the task finishes, whatever the outcome.
    """

    def __init__(self, task_group: TaskGroup, concurrency: int):
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")

        self._task_group = task_group
        self._semaphore = Semaphore(concurrency)

    async def schedule(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        await self._semaphore.acquire()

        async def wrapper():
            try:
                return await coro
            finally:
                self._semaphore.release()

        try:
            return self._task_group.create_task(wrapper(), name=name)
        except BaseException:
            self._semaphore.release()
            coro.close()
            raise
