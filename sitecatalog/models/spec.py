from sqlalchemy import CheckConstraint, Column, Index, Integer, String
from sqlalchemy.orm import declared_attr

from sitecatalog.models.audit import AuditMixin


class MainSpecMixin(AuditMixin):
    """A purchasable variant group of a product, e.g. a colour"""

    main_spec_id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    img_url = Column(String(1024))
    price = Column(Integer, nullable=False, default=0)
    member_price = Column(Integer)
    supply_status = Column(Integer, nullable=False, default=0)
    inventory = Column(Integer, nullable=False, default=0)

    @declared_attr
    def __table_args__(cls):
        table = cls.__tablename__
        return (
            CheckConstraint("inventory >= 0", name=f"ck_{table}_inventory"),
            Index(f"idx_{table}_product", "product_id"),
        )


class SubSpecMixin(AuditMixin):
    """A finer variant under a main spec, e.g. a size"""

    sub_spec_id = Column(Integer, primary_key=True, autoincrement=True)
    main_spec_id = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Integer, nullable=False, default=0)
    member_price = Column(Integer)
    supply_status = Column(Integer, nullable=False, default=0)
    inventory = Column(Integer, nullable=False, default=0)

    @declared_attr
    def __table_args__(cls):
        table = cls.__tablename__
        return (
            CheckConstraint("inventory >= 0", name=f"ck_{table}_inventory"),
            Index(f"idx_{table}_main_spec", "main_spec_id"),
        )
