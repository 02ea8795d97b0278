"""
Coalescing of identical in-flight requests

When several callers ask for the same resource from the same endpoint while
a request is still running, they all await that one request instead of
sending duplicates. The registry entry lives exactly as long as the request:
it is removed as soon as the call completes, whether it succeeded or failed,
so a later caller always triggers a fresh request.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Tuple

from .logger import get_logger

logger = get_logger(__name__)

RequestKey = Tuple[str, str]


class InFlightRequestRegistry:
    """Shares one running request per (endpoint, resource_id) key"""

    def __init__(self):
        self._pending: Dict[RequestKey, asyncio.Task] = {}

    def is_pending(self, endpoint: str, resource_id: str) -> bool:
        return (endpoint, resource_id) in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    async def run(
        self,
        endpoint: str,
        resource_id: str,
        factory: Callable[[], Awaitable[Any]]
    ) -> Any:
        """
        Run `factory()` unless an identical request is already running

        Args:
            endpoint: Endpoint identifier (for example the metadata host)
            resource_id: Resource the request is for
            factory: Zero-argument coroutine function performing the request

        Returns:
            The request's result, shared between every concurrent caller

        Raises:
            Whatever the request raised, re-raised in every waiting caller
        """
        key = (endpoint, resource_id)
        task = self._pending.get(key)

        if task is None:
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))
        else:
            logger.debug(f"Joining in-flight request {endpoint} {resource_id}")

        # Shielded so one waiter being cancelled does not cancel the others
        return await asyncio.shield(task)

    def _forget(self, key: RequestKey, task: asyncio.Task) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]

        # Retrieve the exception so an unobserved failure is not reported twice
        if not task.cancelled():
            task.exception()
