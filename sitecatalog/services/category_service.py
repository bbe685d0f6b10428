from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import logging

from sitecatalog.db.database import storage_errors
from sitecatalog.exceptions import NotFoundError, ValidationError
from sitecatalog.models.platform_category import PlatformProductCategory
from sitecatalog.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    ProductCategoryCreate,
    PlatformCategoryCreate,
    PlatformCategoryUpdate,
)
from sitecatalog.services.base import CatalogService, ShardedService, validate_actor
from sitecatalog.sharding import EntityFamily
from sitecatalog.soft_delete import live_clause

logger = logging.getLogger(__name__)


class CategoryService(ShardedService):
    """Service layer for a site's own category tree"""

    family = EntityFamily.CATEGORY
    create_schema = CategoryCreate
    update_schema = CategoryUpdate
    label = "Category"

    def _prepare_create(self, payload: CategoryCreate) -> Dict[str, Any]:
        values = payload.model_dump()
        values["site_id"] = self._require_site(
            payload.site_id if payload.site_id is not None else self.site_id
        )
        if payload.parent_id is not None:
            self._require_live(EntityFamily.CATEGORY, payload.parent_id, "Parent category")
        return values

    def _check_update(self, row, changes: Dict[str, Any]) -> None:
        parent_id = changes.get("parent_id")
        if parent_id is None:
            return
        if parent_id == row.category_id:
            raise ValidationError("A category cannot be its own parent")
        self._require_live(EntityFamily.CATEGORY, parent_id, "Parent category")

    def list_categories(self) -> List:
        """All live categories of the site, ordered by id"""
        with storage_errors(self.db, f"list categories on shard {self.shard}"):
            return self._live_query().order_by(self.pk.asc()).all()

    def list_by_parent(self, parent_id: Optional[int], page: int = 1, page_size: Optional[int] = None) -> List:
        """Children of ``parent_id``; ``None`` lists the top-level categories"""
        Category = self.model
        query = self._live_query()
        if parent_id is None:
            query = query.filter(Category.parent_id.is_(None))
        else:
            query = query.filter(Category.parent_id == parent_id)
        with storage_errors(self.db, f"list categories by parent {parent_id}"):
            return self._paginate(query, page, page_size)


class ProductCategoryService(ShardedService):
    """Links between products and site categories of the same shard"""

    family = EntityFamily.PRODUCT_CATEGORY
    create_schema = ProductCategoryCreate
    update_schema = ProductCategoryCreate
    label = "ProductCategory"

    def _prepare_create(self, payload: ProductCategoryCreate) -> Dict[str, Any]:
        self._require_live(EntityFamily.PRODUCT, payload.product_id, "Product")
        self._require_live(EntityFamily.CATEGORY, payload.category_id, "Category")
        return payload.model_dump()

    def _live_link(self, product_id: int, category_id: int):
        Link = self.model
        with storage_errors(self.db, f"find link {product_id}/{category_id}"):
            return (
                self._live_query()
                .filter(Link.product_id == product_id, Link.category_id == category_id)
                .first()
            )

    def assign(self, product_id: int, category_id: int, actor: int = 0) -> int:
        """Link a product to a category; returns the existing live link when present"""
        existing = self._live_link(product_id, category_id)
        if existing is not None:
            return existing.id
        return self.create({"product_id": product_id, "category_id": category_id}, actor)

    def remove(self, product_id: int, category_id: int, actor: int = 0) -> bool:
        """Soft delete the link; False when it was already removed"""
        actor = validate_actor(actor)
        link = self._live_link(product_id, category_id)
        if link is not None:
            return self.ledger.mark_deleted(self.model, link.id, actor)
        Link = self.model
        with storage_errors(self.db, f"find link {product_id}/{category_id}"):
            removed = (
                self._scoped(self.db.query(Link.id), self.family, Link)
                .filter(Link.product_id == product_id, Link.category_id == category_id)
                .first()
            )
        if removed is None:
            raise NotFoundError(self.label, f"{product_id}/{category_id}")
        return False

    def update(self, entity_id: int, data, actor: int = 0):
        raise ValidationError("Product category links cannot be edited; remove and assign instead")

    def list_by_product(self, product_id: int, page: int = 1, page_size: Optional[int] = None) -> List:
        return self._list_by(self.model.product_id, product_id, page, page_size)

    def list_categories_for_product(self, product_id: int) -> List:
        """Live categories linked to a product through live links"""
        Link = self.model
        Category = self.shard.model(EntityFamily.CATEGORY)
        with storage_errors(self.db, f"list categories of product {product_id}"):
            query = (
                self.db.query(Category)
                .join(Link, Link.category_id == Category.category_id)
                .filter(Link.product_id == product_id, live_clause(Link), live_clause(Category))
            )
            return (
                self._scoped(query, EntityFamily.CATEGORY, Category)
                .order_by(Category.category_id.asc())
                .all()
            )

    def list_products_in_category(self, category_id: int, page: int = 1, page_size: Optional[int] = None) -> List:
        """Live products linked to a category through live links"""
        Link = self.model
        Product = self.shard.model(EntityFamily.PRODUCT)
        query = (
            self.db.query(Product)
            .join(Link, Link.product_id == Product.product_id)
            .filter(Link.category_id == category_id, live_clause(Link), live_clause(Product))
        )
        query = self._scoped(query, EntityFamily.PRODUCT, Product)
        with storage_errors(self.db, f"list products in category {category_id}"):
            return self._paginate(query, page, page_size, Product.product_id.asc())


class PlatformCategoryService(CatalogService):
    """Platform-wide categories; one table shared by every site"""

    create_schema = PlatformCategoryCreate
    update_schema = PlatformCategoryUpdate
    label = "PlatformCategory"

    def __init__(self, db: Session):
        super().__init__(db, PlatformProductCategory)

    def _prepare_create(self, payload: PlatformCategoryCreate) -> Dict[str, Any]:
        values = payload.model_dump()
        if values["category_id"] is None:
            values.pop("category_id")
        if payload.parent_id is not None:
            self.get(payload.parent_id)
        return values

    def _check_update(self, row, changes: Dict[str, Any]) -> None:
        parent_id = changes.get("parent_id")
        if parent_id is None:
            return
        if parent_id == row.category_id:
            raise ValidationError("A category cannot be its own parent")
        self.get(parent_id)

    def list_categories(self) -> List[PlatformProductCategory]:
        with storage_errors(self.db, "list platform categories"):
            return self._live_query().order_by(self.pk.asc()).all()

    def list_by_parent(self, parent_id: Optional[int], page: int = 1, page_size: Optional[int] = None) -> List:
        query = self._live_query()
        if parent_id is None:
            query = query.filter(PlatformProductCategory.parent_id.is_(None))
        else:
            query = query.filter(PlatformProductCategory.parent_id == parent_id)
        with storage_errors(self.db, f"list platform categories by parent {parent_id}"):
            return self._paginate(query, page, page_size)

    def list_by_flags(
        self,
        retail: Optional[bool] = None,
        inquiry: Optional[bool] = None,
        is_sensitive: Optional[bool] = None,
    ) -> List[PlatformProductCategory]:
        """Filter on visibility and sensitivity flags; None means any"""
        query = self._live_query()
        if retail is not None:
            query = query.filter(PlatformProductCategory.retail == retail)
        if inquiry is not None:
            query = query.filter(PlatformProductCategory.inquiry == inquiry)
        if is_sensitive is not None:
            query = query.filter(PlatformProductCategory.is_sensitive == is_sensitive)
        with storage_errors(self.db, "list platform categories by flags"):
            return query.order_by(self.pk.asc()).all()
