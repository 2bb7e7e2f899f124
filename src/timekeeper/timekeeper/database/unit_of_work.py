from __future__ import annotations

from typing import Any, ContextManager, Protocol


class UnitOfWork(Protocol):
    def transaction(self) -> ContextManager[Any]:
        """Yield a transaction handle; commit on normal exit, roll back otherwise."""

        raise NotImplementedError
