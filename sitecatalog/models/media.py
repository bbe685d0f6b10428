from sqlalchemy import Boolean, Column, Index, Integer, String
from sqlalchemy.orm import declared_attr

from sitecatalog.models.audit import AuditMixin


class ProductImageMixin(AuditMixin):
    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False)
    img_url = Column(String(1024), nullable=False)
    cover_pic = Column(Boolean, nullable=False, default=False)

    @declared_attr
    def __table_args__(cls):
        return (Index(f"idx_{cls.__tablename__}_product", "product_id"),)


class ProductVideoMixin(AuditMixin):
    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False)
    video_url = Column(String(1024), nullable=False)

    @declared_attr
    def __table_args__(cls):
        return (Index(f"idx_{cls.__tablename__}_product", "product_id"),)
