"""
Base Store
Shared session handling for the catalog, stock and order stores
"""
from typing import Any, Optional, Type
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from erp_inventory.core.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)


class BaseStore:
    """
    Base class for datastore access

    Stores never commit; the calling service owns the transaction.
    """

    model: Optional[Type[Any]] = None

    def __init__(self, db: Session):
        self.db = db

    def get(self, record_id: int):
        return self.db.get(self.model, record_id)

    def _fetch_one(self, stmt, for_update: bool = False):
        """
        Run a single-row select. With for_update the row is locked until the
        transaction ends (SELECT ... FOR UPDATE) and the identity-map copy is
        refreshed from the locked read.
        """
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def add(self, record, action: str = "write"):
        self.db.add(record)
        self.flush(action)
        return record

    def flush(self, action: str = "write", error_class: Type[PersistenceFailure] = PersistenceFailure):
        """Flush pending changes, translating driver errors into PersistenceFailure"""
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Datastore {action} failed: {e}")
            raise error_class(f"Failed to {action}: {e}") from e
