"""
Async Methods - asyncio front end for a Dialect Methods Provider

Every public operation of the wrapped provider becomes a coroutine that runs
the blocking call in a worker thread. Cancelling the awaiting task sets the
operation's CancellationToken, so the provider stops before its next
statement; a statement already running on the driver completes.

Usage:
    methods = AsyncDialectMethods(get_methods(db))
    created = await methods.create_table_if_not_exists(db, table)
"""

import asyncio
import functools
from typing import Any, Callable

from ..connection import CancellationToken, DbConnection
from .base import DialectMethods
from .factory import get_methods

import logging
logger = logging.getLogger(__name__)


class AsyncDialectMethods:
    """Awaitable wrapper around a DialectMethods instance."""

    def __init__(self, methods: DialectMethods):
        self.methods = methods

    @classmethod
    def for_connection(cls, db: DbConnection) -> "AsyncDialectMethods":
        return cls(get_methods(db))

    def __repr__(self) -> str:
        return f"AsyncDialectMethods({self.methods!r})"

    def __getattr__(self, name: str) -> Any:
        attribute = getattr(self.methods, name)
        if name.startswith("_") or not callable(attribute):
            return attribute
        return self._wrap(name, attribute)

    @staticmethod
    def _wrap(name: str, method: Callable) -> Callable:
        @functools.wraps(method)
        async def run(*args, **kwargs):
            token = kwargs.get("cancellation")
            if token is None:
                token = CancellationToken()
                kwargs["cancellation"] = token
            try:
                return await asyncio.to_thread(method, *args, **kwargs)
            except asyncio.CancelledError:
                logger.debug(f"{name} cancelled; signalling the worker thread")
                token.cancel()
                raise
        return run
