from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

from sqlalchemy.engine import Connection, CursorResult, RootTransaction
from sqlalchemy.sql.base import Executable

from numeris.errors import RollbackFailed

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Transaction scope for a write spanning several rows.

    Statements go through ``execute`` while the scope is open. Leaving the
    ``with`` block normally commits; leaving it by any exception, including
    ``KeyboardInterrupt`` and task cancellation, rolls back. If the rollback
    fails too, ``RollbackFailed`` is raised carrying both errors.
    """

    def __init__(self, conn: Connection) -> None:
        self.conn = conn
        self._tx: RootTransaction | None = None

    @property
    def active(self) -> bool:
        return self._tx is not None and self._tx.is_active

    def __enter__(self) -> UnitOfWork:
        if self.conn.in_transaction():
            # Only a unit of work may commit; discard whatever autobegan before it.
            logger.debug("Discarding implicit transaction before unit of work")
            self.conn.rollback()
        self._tx = self.conn.begin()
        logger.debug("Unit of work started")
        return self

    def execute(self, statement: Executable, params: dict[str, Any] | None = None) -> CursorResult[Any]:
        if not self.active:
            raise RuntimeError("Unit of work is not active")
        return self.conn.execute(statement, params)

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        tx, self._tx = self._tx, None
        if tx is None:  # pragma: no cover
            return
        if exc is None:
            try:
                tx.commit()
            except BaseException as commit_exc:
                self._rollback(tx, commit_exc)
                raise
            logger.debug("Unit of work committed")
            return
        self._rollback(tx, exc)

    @staticmethod
    def _rollback(tx: RootTransaction, exc: BaseException) -> None:
        try:
            tx.rollback()
        except Exception as rollback_exc:
            logger.error("Rollback failed after %r: %s", exc, rollback_exc)
            raise RollbackFailed(exc, rollback_exc) from exc
        logger.info("Unit of work rolled back: %s", type(exc).__name__)
