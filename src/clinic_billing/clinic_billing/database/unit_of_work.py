from __future__ import annotations

from contextlib import contextmanager
from typing import ContextManager, Iterator, Protocol


class UnitOfWork(Protocol):
    """Anything able to group repository calls into one atomic transaction."""

    def transaction(self) -> ContextManager[None]:
        raise NotImplementedError


class NullUnitOfWork:
    """No-op unit of work for stores without transactions (e.g. in-memory)."""

    @contextmanager
    def transaction(self) -> Iterator[None]:
        yield
