from enum import IntEnum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declared_attr

from sitecatalog.models.audit import AuditMixin


class ProductStatus(IntEnum):
    INACTIVE = 0
    ACTIVE = 1
    DRAFT = 2


class SiteProductMixin(AuditMixin):
    """Columns of ``site_products_<x>``; one mapped class per shard is built in the registry"""

    product_id = Column(Integer, primary_key=True, autoincrement=True)
    site_id = Column(Integer, nullable=False)
    platform_category_id = Column(Integer)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    type = Column(Integer, nullable=False, default=0)
    price = Column(Integer, nullable=False, default=0)
    member_price = Column(Integer)
    supply_status = Column(Integer, nullable=False, default=0)
    # Denormalized total; reconciled from main specs only on request
    inventory = Column(Integer, nullable=False, default=0)
    release_at = Column(DateTime(timezone=True))
    offshelf_at = Column(DateTime(timezone=True))
    scheduled_release_time = Column(DateTime(timezone=True))
    scheduled_offshelf_time = Column(DateTime(timezone=True))
    auto_offshelf_soldout = Column(Boolean, nullable=False, default=False)
    only_member = Column(Boolean, nullable=False, default=False)
    status = Column(Integer, nullable=False, default=int(ProductStatus.ACTIVE))

    @declared_attr
    def __table_args__(cls):
        table = cls.__tablename__
        return (
            CheckConstraint("inventory >= 0", name=f"ck_{table}_inventory"),
            Index(f"idx_{table}_site_status", "site_id", "status"),
            Index(f"idx_{table}_platform_category", "platform_category_id"),
        )

    def __repr__(self):
        return f"<{type(self).__name__}(product_id={self.product_id}, name='{self.name}')>"
