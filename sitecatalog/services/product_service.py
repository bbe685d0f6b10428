from sqlalchemy import select
from typing import Any, Dict, Optional, Union
import logging

from sitecatalog.db.database import storage_errors
from sitecatalog.exceptions import NotFoundError, ValidationError
from sitecatalog.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductFilters,
    ProductResponse,
    ProductListResponse,
)
from sitecatalog.services.base import ShardedService, validate_page
from sitecatalog.sharding import EntityFamily, parse_product_coding
from sitecatalog.soft_delete import live_clause

logger = logging.getLogger(__name__)


class ProductService(ShardedService):
    """Service layer for product operations on one shard"""

    family = EntityFamily.PRODUCT
    create_schema = ProductCreate
    update_schema = ProductUpdate
    label = "Product"

    def _prepare_create(self, payload: ProductCreate) -> Dict[str, Any]:
        values = payload.model_dump()
        values["site_id"] = self._require_site(
            payload.site_id if payload.site_id is not None else self.site_id
        )
        return values

    def get_product(self, product_id: int, status: Optional[int] = None):
        """Get a live product, optionally requiring a given status"""
        product = self.get(product_id)
        if status is not None and product.status != status:
            raise NotFoundError(self.label, product_id)
        return product

    def get_product_coding(self, product_id: int) -> str:
        """Human readable code for a live product, e.g. ``D00000000007``"""
        product = self.get(product_id)
        return self.shard.product_coding(product.product_id)

    def get_by_coding(self, code: str):
        """Look up a product by its code; the code must belong to this shard"""
        shard, product_id = parse_product_coding(code)
        if shard != self.shard:
            raise ValidationError(f"Product code {code} belongs to shard {shard}, not {self.shard}")
        return self.get(product_id)

    def list_products(
        self,
        filters: Optional[Union[ProductFilters, Dict[str, Any]]] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> ProductListResponse:
        """List live products, newest id first.

        Filters:
        - name: substring match
        - status: equality
        - category_id: linked to that live site category through a live link
        - platform_category_id: equality
        - inventory_status: normal (inventory > 0), none (inventory <= 0),
          partial (inventory > 0 and some live main spec has inventory 0)
        """
        filters = self._parse(ProductFilters, filters or {})
        page, page_size, offset = validate_page(page, page_size)
        Product = self.model

        query = self._live_query()

        if filters.name:
            query = query.filter(Product.name.contains(filters.name, autoescape=True))

        if filters.status is not None:
            query = query.filter(Product.status == filters.status)

        if filters.platform_category_id is not None:
            query = query.filter(Product.platform_category_id == filters.platform_category_id)

        if filters.category_id is not None:
            Link = self.shard.model(EntityFamily.PRODUCT_CATEGORY)
            Category = self.shard.model(EntityFamily.CATEGORY)
            linked = (
                select(Link.product_id)
                .join(Category, Category.category_id == Link.category_id)
                .where(
                    Link.category_id == filters.category_id,
                    live_clause(Link),
                    live_clause(Category),
                )
            )
            query = query.filter(Product.product_id.in_(linked))

        if filters.inventory_status == "normal":
            query = query.filter(Product.inventory > 0)
        elif filters.inventory_status == "none":
            query = query.filter(Product.inventory <= 0)
        elif filters.inventory_status == "partial":
            MainSpec = self.shard.model(EntityFamily.MAIN_SPEC)
            sold_out_spec = (
                select(MainSpec.main_spec_id)
                .where(
                    MainSpec.product_id == Product.product_id,
                    MainSpec.inventory == 0,
                    live_clause(MainSpec),
                )
                .exists()
            )
            query = query.filter(Product.inventory > 0, sold_out_spec)

        with storage_errors(self.db, f"list products on shard {self.shard}"):
            total = query.count()
            products = (
                query.order_by(Product.product_id.desc())
                .offset(offset)
                .limit(page_size)
                .all()
            )

        logger.debug(f"Found {len(products)} products (page {page}, total: {total}) on shard {self.shard}")

        return ProductListResponse(
            products=[ProductResponse.model_validate(p) for p in products],
            total=total,
            page=page,
            page_size=page_size,
            has_next=(page * page_size) < total
        )

    def list_by_platform_category(self, platform_category_id: int, page: int = 1, page_size: Optional[int] = None):
        return self._list_by(self.model.platform_category_id, platform_category_id, page, page_size)
