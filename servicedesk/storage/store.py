from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from .backends import Records, StorageBackend

logger = logging.getLogger(__name__)


class RecordStore:
    """A named collection loaded and rewritten as a whole on every mutation.

    Mutations go through :meth:`transaction`, which serialises read-modify-write
    cycles on this store within the process. The last completed write wins.
    """

    def __init__(
        self,
        name: str,
        backend: StorageBackend,
        *,
        seed: Callable[[], Records] | None = None,
    ) -> None:
        self.name = name
        self._backend = backend
        self._seed = seed
        self._lock = asyncio.Lock()

    def read(self) -> Records:
        records = self._backend.load()
        if records is None:
            records = self._seed() if self._seed is not None else []
            logger.info("Initialising store %s with %d record(s)", self.name, len(records))
            self._backend.save(records)
        return records

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Records]:
        """Yield the current records; persist them if the block completes."""

        async with self._lock:
            records = self.read()
            yield records
            self._backend.save(records)
