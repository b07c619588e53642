# Copyright 2026 Dell Inc. or its subsidiaries. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Background task runner for detached pipeline work."""

import asyncio
import logging
from typing import Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """Owns the asyncio tasks that outlive the request which started them.

    Pipelines and watchdogs are spawned here instead of with a bare
    ``asyncio.create_task`` so they are referenced until they finish, their
    exceptions are logged, and the application lifespan can cancel them.

    ``spawn`` works from the event loop thread and from worker threads
    (sync FastAPI routes run in a thread pool); the latter needs the loop
    bound at startup with :meth:`bind_loop`.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def bind_loop(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Remember the loop tasks are scheduled on from other threads."""
        self._loop = loop or asyncio.get_running_loop()

    @property
    def active_count(self) -> int:
        """Number of tasks that have not finished yet."""
        return len(self._tasks)

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> None:
        """Schedule coro as a detached task.

        Raises:
            RuntimeError: If called outside the loop and no loop is bound.
        """
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None:
            self._create(coro, name)
            return

        if self._loop is None or self._loop.is_closed():
            coro.close()
            raise RuntimeError("BackgroundTaskRunner has no event loop bound")
        self._loop.call_soon_threadsafe(self._create, coro, name)

    def _create(self, coro: Coroutine, name: Optional[str]) -> None:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background task %s failed",
                task.get_name(),
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def join(self) -> None:
        """Wait until every task, including ones spawned meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            # let done callbacks and call_soon_threadsafe spawns run
            await asyncio.sleep(0)

    async def shutdown(self) -> None:
        """Cancel every running task and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Background task runner stopped: cancelled=%d", len(tasks))
