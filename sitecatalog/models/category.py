from sqlalchemy import Column, Index, Integer, String
from sqlalchemy.orm import declared_attr

from sitecatalog.models.audit import AuditMixin


class SiteCategoryMixin(AuditMixin):
    """Site-scoped category tree"""

    category_id = Column(Integer, primary_key=True, autoincrement=True)
    parent_id = Column(Integer)
    site_id = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)

    @declared_attr
    def __table_args__(cls):
        table = cls.__tablename__
        return (
            Index(f"idx_{table}_site_parent", "site_id", "parent_id"),
        )


class ProductCategoryLinkMixin(AuditMixin):
    """Many-to-many link between products and site categories of one shard"""

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False)
    category_id = Column(Integer, nullable=False)

    @declared_attr
    def __table_args__(cls):
        table = cls.__tablename__
        return (
            Index(f"idx_{table}_product", "product_id"),
            Index(f"idx_{table}_category", "category_id"),
        )
