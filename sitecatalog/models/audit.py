from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.sql import func


class AuditMixin:
    """Audit and soft-delete columns shared by every catalog table.

    ``created_by``/``updated_by`` hold the acting user id; 0 means the system.
    Rows are never physically deleted: ``deleted_at`` marks them dead.
    """

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    created_by = Column(Integer, nullable=False, default=0)
    updated_by = Column(Integer, nullable=False, default=0)
    deleted_at = Column(DateTime(timezone=True))
