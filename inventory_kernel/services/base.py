"""
Common base for services that write.

A service receives the caller's ``Session`` and persists with ``flush()``; it
never commits or rolls back.  All-or-nothing units run inside
``session.begin_nested()`` so a failure undoes only the service's own work.
Reads that do not lock belong in ``inventory_kernel.selectors``.
"""

from abc import ABC
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):

    def __init__(self, session: Session):
        self.session = session

    def _lock_one(self, model: type[ModelType], *criteria: Any) -> ModelType | None:
        """
        ``SELECT ... FOR UPDATE`` a single row.

        ``populate_existing`` refreshes an already-loaded instance, so state
        read after the lock is the committed state another session left.
        """
        stmt = (
            select(model)
            .where(*criteria)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()
