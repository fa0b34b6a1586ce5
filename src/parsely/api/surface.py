# Copyright 2026 Firefly Software Solutions Inc.
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
"""Three call shapes derived from one coroutine.

Every public execution method is written once, as a coroutine, and
decorated with :func:`surface` (or :func:`class_surface`). The decorated
attribute can then be used three ways, all running the same code::

    scores = await query.find()                                  # awaitable
    query.find.callback(completion=on_done)                      # callback
    async for scores in query.find.publisher():                  # push-style
        ...

The callback receives a :class:`Result`, always scheduled on the event loop
(never invoked inline). Coroutines that take an ``on_intermediate`` keyword
argument may report non-terminal values; the callback and publisher forms
forward those as extra deliveries before the terminal one.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import inspect
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from parsely.kernel.exceptions import ParseError

U = TypeVar("U")

_INTERMEDIATE_PARAM = "on_intermediate"


@dataclass(frozen=True)
class Result(Generic[U]):
    """Outcome delivered to callback-style completions."""

    value: U | None = None
    error: ParseError | None = None

    @classmethod
    def success(cls, value: U) -> Result[U]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ParseError) -> Result[U]:
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None

    def get(self) -> U:
        """The value, or raise the error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def as_parse_error(exc: BaseException) -> ParseError:
    if isinstance(exc, ParseError):
        return exc
    return ParseError.other(str(exc) or type(exc).__name__, exc)


class BoundSurface(Generic[U]):
    """A coroutine function bound to its receiver, with its derived call shapes."""

    def __init__(self, func: Callable[..., Awaitable[U]], accepts_intermediate: bool) -> None:
        self._func = func
        self._accepts_intermediate = accepts_intermediate
        functools.update_wrapper(self, func)

    def __call__(self, *args: Any, **kwargs: Any) -> Awaitable[U]:
        return self._func(*args, **kwargs)

    def callback(
        self,
        *args: Any,
        completion: Callable[[Result[U]], None],
        callback_loop: asyncio.AbstractEventLoop | None = None,
        **kwargs: Any,
    ) -> asyncio.Task[None] | concurrent.futures.Future[None]:
        """Run in the background and deliver a :class:`Result` to *completion*.

        *completion* runs on *callback_loop* (default: the running loop).
        """
        try:
            running: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        target_loop = callback_loop or running
        if target_loop is None:
            raise RuntimeError("callback() needs a running event loop or an explicit callback_loop")

        def deliver(result: Result[U]) -> None:
            target_loop.call_soon_threadsafe(completion, result)

        if self._accepts_intermediate:
            kwargs[_INTERMEDIATE_PARAM] = lambda value: deliver(Result.success(value))

        async def run() -> None:
            try:
                value = await self._func(*args, **kwargs)
            except Exception as exc:  # noqa: BLE001
                deliver(Result.failure(as_parse_error(exc)))
                return
            deliver(Result.success(value))

        if running is not None:
            return running.create_task(run())
        return asyncio.run_coroutine_threadsafe(run(), target_loop)

    async def publisher(self, *args: Any, **kwargs: Any) -> AsyncIterator[U]:
        """Async iterator that emits each delivery; failures are raised from the iterator."""
        if not self._accepts_intermediate:
            yield await self._func(*args, **kwargs)
            return

        queue: asyncio.Queue[U] = asyncio.Queue()
        kwargs[_INTERMEDIATE_PARAM] = queue.put_nowait
        task = asyncio.ensure_future(self._func(*args, **kwargs))
        try:
            while True:
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait({task, getter}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    yield getter.result()
                    continue
                getter.cancel()
                while not queue.empty():
                    yield queue.get_nowait()
                yield task.result()
                return
        finally:
            if not task.done():
                task.cancel()


class surface(Generic[U]):  # noqa: N801
    """Decorator for coroutine methods bound to an instance."""

    _bind_class = False

    def __init__(self, func: Callable[..., Awaitable[U]]) -> None:
        self._func = func
        self._accepts_intermediate = _INTERMEDIATE_PARAM in inspect.signature(func).parameters
        functools.update_wrapper(self, func)  # type: ignore[arg-type]

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        receiver = owner if self._bind_class else instance
        if receiver is None:
            return self
        return BoundSurface(functools.partial(self._func, receiver), self._accepts_intermediate)


class class_surface(surface[U]):  # noqa: N801
    """Decorator for coroutine methods bound to the class, like ``classmethod``."""

    _bind_class = True
