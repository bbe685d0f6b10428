"""Soft-delete policy shared by every catalog table.

Deletion stamps ``deleted_at`` and ``updated_by`` and never removes the row.
Every read, list, join and subquery goes through ``live`` so dead rows stay
invisible.
"""
from datetime import datetime, timezone
import logging

from sqlalchemy import inspect, update
from sqlalchemy.orm import Query, Session

from sitecatalog.db.database import commit_or_flush, storage_errors
from sitecatalog.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def primary_key(model):
    return inspect(model).primary_key[0]


def live_clause(model):
    return model.deleted_at.is_(None)


def live(query: Query, model) -> Query:
    """Restrict a query to rows that are not soft-deleted"""
    return query.filter(live_clause(model))


class SoftDeleteLedger:
    """Records deletions as timestamp + actor instead of removing rows"""

    def __init__(self, db: Session):
        self.db = db

    def mark_deleted(self, model, entity_id: int, actor: int) -> bool:
        """Soft delete one row.

        Returns True when the row was deleted by this call and False when it
        was already deleted. Raises NotFoundError when no such row exists.
        """
        pk = primary_key(model)
        with storage_errors(self.db, f"soft delete {model.__tablename__}#{entity_id}"):
            result = self.db.execute(
                update(model)
                .where(pk == entity_id, live_clause(model))
                .values(deleted_at=utcnow(), updated_by=actor)
            )
            updated = result.rowcount > 0
            exists = updated or self.db.query(pk).filter(pk == entity_id).first() is not None
            commit_or_flush(self.db)
        if not exists:
            raise NotFoundError(model.__tablename__, entity_id)
        if not updated:
            logger.debug(f"{model.__tablename__}#{entity_id} already deleted")
            return False

        logger.info(f"Soft deleted {model.__tablename__}#{entity_id} by actor {actor}")
        return True

    def restore(self, model, entity_id: int, actor: int) -> bool:
        """Undo a soft delete; False when the row was already live"""
        pk = primary_key(model)
        with storage_errors(self.db, f"restore {model.__tablename__}#{entity_id}"):
            result = self.db.execute(
                update(model)
                .where(pk == entity_id, model.deleted_at.is_not(None))
                .values(deleted_at=None, updated_by=actor)
            )
            updated = result.rowcount > 0
            exists = updated or self.db.query(pk).filter(pk == entity_id).first() is not None
            commit_or_flush(self.db)
        if not exists:
            raise NotFoundError(model.__tablename__, entity_id)
        if not updated:
            return False

        logger.info(f"Restored {model.__tablename__}#{entity_id} by actor {actor}")
        return True
