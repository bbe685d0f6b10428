from sqlalchemy import Boolean, Column, Index, Integer, String

from sitecatalog.db.database import Base
from sitecatalog.models.audit import AuditMixin


class PlatformProductCategory(AuditMixin, Base):
    """Platform-wide category tree; not sharded"""

    __tablename__ = "platform_product_categories"

    category_id = Column(Integer, primary_key=True, autoincrement=True)
    parent_id = Column(Integer)
    name = Column(String(255), nullable=False)
    retail = Column(Boolean, nullable=False, default=True)
    inquiry = Column(Boolean, nullable=False, default=False)
    is_sensitive = Column(Boolean, nullable=False, default=False)
    sensitive_type = Column(Integer)

    __table_args__ = (
        Index("idx_platform_product_categories_parent", "parent_id"),
    )

    def __repr__(self):
        return f"<PlatformProductCategory(category_id={self.category_id}, name='{self.name}')>"
