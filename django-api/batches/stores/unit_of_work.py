"""Units of work grouping several store writes into one outcome.

Two backends share one contract:

- ``AtomicUnitOfWork`` wraps the writes in a database transaction, so an
  abort discards every write.
- ``CompensatingUnitOfWork`` is used when the backing store cannot group
  writes. Each write lands immediately and callers register an undo step
  with ``on_abort``; an abort runs the undo steps newest first. This is
  best-effort and weaker than a transaction.

Services only use ``with uow:``, ``on_abort`` and the raised exception.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Self

from django.db import DEFAULT_DB_ALIAS, connections, transaction

from batches.conf import get_setting

logger = logging.getLogger(__name__)

Compensation = Callable[[], None]


class UnitOfWork(ABC):
    """Context manager committing on success and aborting on any exception."""

    def __enter__(self) -> Self:
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.commit()
        else:
            self.abort()
        return False

    @property
    @abstractmethod
    def atomic(self) -> bool:
        ...

    @abstractmethod
    def begin(self) -> None:
        ...

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def abort(self) -> None:
        ...

    @abstractmethod
    def on_abort(self, compensation: Compensation) -> None:
        """Register an undo step for a write that already happened."""
        ...


class AtomicUnitOfWork(UnitOfWork):
    atomic = True

    def __init__(self, using: str = DEFAULT_DB_ALIAS) -> None:
        self._using = using
        self._block = None

    def begin(self) -> None:
        self._block = transaction.atomic(using=self._using)
        self._block.__enter__()

    def commit(self) -> None:
        block, self._block = self._block, None
        block.__exit__(None, None, None)

    def abort(self) -> None:
        block, self._block = self._block, None
        transaction.set_rollback(True, using=self._using)
        block.__exit__(None, None, None)
        logger.debug("Transaction rolled back")

    def on_abort(self, compensation: Compensation) -> None:
        # The rollback already undoes every write in the block.
        pass


class CompensatingUnitOfWork(UnitOfWork):
    atomic = False

    def __init__(self) -> None:
        self._compensations: list[Compensation] = []

    def begin(self) -> None:
        self._compensations = []
        logger.warning(
            "Transactions unavailable, writing sequentially with compensating rollback"
        )

    def commit(self) -> None:
        self._compensations = []

    def abort(self) -> None:
        compensations, self._compensations = self._compensations, []
        for compensation in reversed(compensations):
            try:
                compensation()
            except Exception:
                logger.exception("Compensating rollback step failed, partial state may remain")
        logger.warning("Compensating rollback finished after %d step(s)", len(compensations))

    def on_abort(self, compensation: Compensation) -> None:
        self._compensations.append(compensation)


def unit_of_work_factory(using: str = DEFAULT_DB_ALIAS) -> Callable[[], UnitOfWork]:
    """Pick the strongest unit of work the configured database supports."""
    if get_setting("TRANSACTIONAL_WRITES") and connections[using].features.supports_transactions:
        return lambda: AtomicUnitOfWork(using=using)
    return CompensatingUnitOfWork
