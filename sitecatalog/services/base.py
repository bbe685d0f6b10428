from typing import Any, Dict, List, Optional, Type, Union
import logging

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.orm import Query, Session

from sitecatalog.config import settings
from sitecatalog.db.database import commit_or_flush, storage_errors
from sitecatalog.exceptions import NotFoundError, ValidationError
from sitecatalog.sharding import EntityFamily, Shard
from sitecatalog.soft_delete import SoftDeleteLedger, live, primary_key

logger = logging.getLogger(__name__)


def validate_actor(actor) -> int:
    if isinstance(actor, bool) or not isinstance(actor, int) or actor < 0:
        raise ValidationError(f"actor must be a non-negative integer, got {actor!r}")
    return actor


def validate_page(page: int, page_size: Optional[int]) -> tuple:
    """Check 1-based pagination and return (page, page_size, offset)"""
    if page_size is None:
        page_size = settings.default_page_size
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValidationError(f"page must be >= 1, got {page!r}")
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise ValidationError(f"page_size must be >= 1, got {page_size!r}")
    if page_size > settings.max_page_size:
        raise ValidationError(f"page_size must be <= {settings.max_page_size}, got {page_size}")
    return page, page_size, (page - 1) * page_size


class CatalogService:
    """CRUD over one catalog table with soft-delete semantics.

    Subclasses set ``create_schema``/``update_schema`` and resolve ``self.model``.
    Reads only ever see live rows; ``delete`` goes through the SoftDeleteLedger.
    """

    create_schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    label = "Entity"

    def __init__(self, db: Session, model):
        self.db = db
        self.model = model
        self.ledger = SoftDeleteLedger(db)

    @property
    def pk(self):
        return primary_key(self.model)

    def _live_query(self) -> Query:
        return live(self.db.query(self.model), self.model)

    def _parse(self, schema: Type[BaseModel], data: Union[BaseModel, Dict[str, Any]]) -> BaseModel:
        """Accept a schema instance or raw field data"""
        if isinstance(data, schema):
            return data
        if isinstance(data, BaseModel):
            data = data.model_dump(exclude_unset=True)
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {self.label} data: {e}") from e

    def _prepare_create(self, payload: BaseModel) -> Dict[str, Any]:
        """Hook for parent checks; returns the column values to insert"""
        return payload.model_dump()

    def _paginate(self, query: Query, page: int, page_size: Optional[int], *order_by) -> List:
        _, page_size, offset = validate_page(page, page_size)
        return query.order_by(*(order_by or (self.pk.asc(),))).offset(offset).limit(page_size).all()

    def get(self, entity_id: int):
        """Get a live row by id, raising NotFoundError otherwise"""
        with storage_errors(self.db, f"get {self.label} {entity_id}"):
            row = self._live_query().filter(self.pk == entity_id).first()
        if row is None:
            raise NotFoundError(self.label, entity_id)
        return row

    def create(self, data: Union[BaseModel, Dict[str, Any]], actor: int = 0) -> int:
        """Insert a row and return its generated id"""
        actor = validate_actor(actor)
        payload = self._parse(self.create_schema, data)
        values = self._prepare_create(payload)
        with storage_errors(self.db, f"create {self.label}"):
            row = self.model(**values, created_by=actor, updated_by=actor)
            self.db.add(row)
            self.db.flush()
            new_id = getattr(row, self.pk.key)
            commit_or_flush(self.db)
        logger.info(f"Created {self.model.__tablename__}#{new_id} by actor {actor}")
        return new_id

    def update(self, entity_id: int, data: Union[BaseModel, Dict[str, Any]], actor: int = 0):
        """Apply the fields present in ``data`` to a live row"""
        actor = validate_actor(actor)
        payload = self._parse(self.update_schema, data)
        changes = payload.model_dump(exclude_unset=True)
        row = self.get(entity_id)
        self._check_update(row, changes)
        with storage_errors(self.db, f"update {self.label} {entity_id}"):
            for field, value in changes.items():
                setattr(row, field, value)
            row.updated_by = actor
            commit_or_flush(self.db)
            self.db.refresh(row)
        logger.info(f"Updated {self.model.__tablename__}#{entity_id} by actor {actor}: {sorted(changes)}")
        return row

    def _check_update(self, row, changes: Dict[str, Any]) -> None:
        """Hook for subclasses to validate references in an update"""

    def delete(self, entity_id: int, actor: int = 0) -> bool:
        """Soft delete; True if deleted now, False if it already was"""
        return self.ledger.mark_deleted(self.model, entity_id, validate_actor(actor))

    def restore(self, entity_id: int, actor: int = 0) -> bool:
        return self.ledger.restore(self.model, entity_id, validate_actor(actor))

    def _list_by(self, column, value, page: int = 1, page_size: Optional[int] = None) -> List:
        with storage_errors(self.db, f"list {self.label} by {column.key}"):
            query = self._live_query().filter(column == value)
            return self._paginate(query, page, page_size)


class ShardedService(CatalogService):
    """A CatalogService bound to one shard's table of ``family``.

    With a ``site_id`` every read, parent check and delete is limited to rows
    owned by that site, since several sites share each shard.
    """

    family: EntityFamily

    def __init__(self, db: Session, shard: Union[Shard, str], site_id: Optional[int] = None):
        self.shard = Shard.coerce(shard)
        super().__init__(db, self.shard.model(self.family))
        self.site_id = None
        if site_id is not None:
            self.site_id = self._require_site(site_id)

    def _site_clause(self, family: EntityFamily, model):
        """Ownership condition for rows of ``model``; None when unscoped"""
        if self.site_id is None:
            return None
        if family in (EntityFamily.PRODUCT, EntityFamily.CATEGORY):
            return model.site_id == self.site_id
        Product = self.shard.model(EntityFamily.PRODUCT)
        site_products = select(Product.product_id).where(Product.site_id == self.site_id)
        if family == EntityFamily.SUB_SPEC:
            MainSpec = self.shard.model(EntityFamily.MAIN_SPEC)
            site_specs = select(MainSpec.main_spec_id).where(MainSpec.product_id.in_(site_products))
            return model.main_spec_id.in_(site_specs)
        return model.product_id.in_(site_products)

    def _scoped(self, query: Query, family: EntityFamily, model) -> Query:
        clause = self._site_clause(family, model)
        return query if clause is None else query.filter(clause)

    def _live_query(self) -> Query:
        return self._scoped(super()._live_query(), self.family, self.model)

    def _require_owned(self, entity_id: int) -> None:
        """Raise NotFoundError unless the row, live or not, belongs to this site"""
        if self.site_id is None:
            return
        with storage_errors(self.db, f"check owner of {self.label} {entity_id}"):
            query = self._scoped(self.db.query(self.pk), self.family, self.model)
            row = query.filter(self.pk == entity_id).first()
        if row is None:
            raise NotFoundError(self.label, entity_id)

    def delete(self, entity_id: int, actor: int = 0) -> bool:
        self._require_owned(entity_id)
        return super().delete(entity_id, actor)

    def restore(self, entity_id: int, actor: int = 0) -> bool:
        self._require_owned(entity_id)
        return super().restore(entity_id, actor)

    def _require_live(self, family: EntityFamily, entity_id: Optional[int], label: str):
        """Ensure a referenced row is live on this same shard and owned by this site"""
        model = self.shard.model(family)
        pk = primary_key(model)
        with storage_errors(self.db, f"check {label} {entity_id}"):
            query = self._scoped(live(self.db.query(model), model), family, model)
            row = query.filter(pk == entity_id).first()
        if row is None:
            raise NotFoundError(f"{label} on shard {self.shard}", entity_id)
        return row

    def _require_site(self, site_id: Optional[int]) -> int:
        if site_id is None:
            raise ValidationError(f"site_id is required for {self.label}")
        if not self.shard.owns_site(site_id):
            raise ValidationError(f"site {site_id} does not route to shard {self.shard}")
        if self.site_id is not None and site_id != self.site_id:
            raise ValidationError(f"{self.label} for site {site_id} cannot be written through site {self.site_id}")
        return site_id
