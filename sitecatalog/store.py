"""Request-scoped façade over one site's shard.

The shard is resolved once from ``site_id`` and shared by every repository the
store hands out, so a product and its specs, links and media always land in
tables with the same suffix.
"""
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union
import logging

from pydantic import BaseModel
from sqlalchemy.orm import Session

from sitecatalog.db.database import transaction
from sitecatalog.exceptions import ValidationError
from sitecatalog.inventory import InventoryMutator, InventoryRef
from sitecatalog.services.category_service import CategoryService, ProductCategoryService
from sitecatalog.services.media_service import ProductImageService, ProductVideoService
from sitecatalog.services.product_service import ProductService
from sitecatalog.services.spec_service import MainSpecService, SubSpecService
from sitecatalog.sharding import Shard

logger = logging.getLogger(__name__)


class CatalogStore:
    def __init__(self, db: Session, site_id: Optional[int] = None, shard: Optional[Union[Shard, str]] = None):
        if shard is None:
            if site_id is None:
                raise ValidationError("CatalogStore needs a site_id or a shard")
            shard = Shard.for_site(site_id)
        else:
            shard = Shard.coerce(shard)
            if site_id is not None and not shard.owns_site(site_id):
                raise ValidationError(f"site {site_id} does not route to shard {shard}")

        self.db = db
        self.site_id = site_id
        self.shard = shard

        self.products = ProductService(db, shard, site_id=site_id)
        self.main_specs = MainSpecService(db, shard, site_id=site_id)
        self.sub_specs = SubSpecService(db, shard, site_id=site_id)
        self.categories = CategoryService(db, shard, site_id=site_id)
        self.product_categories = ProductCategoryService(db, shard, site_id=site_id)
        self.images = ProductImageService(db, shard, site_id=site_id)
        self.videos = ProductVideoService(db, shard, site_id=site_id)
        self.inventory = InventoryMutator(db)

    @classmethod
    def for_site(cls, db: Session, site_id: int) -> "CatalogStore":
        return cls(db, site_id=site_id)

    @classmethod
    def for_suffix(cls, db: Session, suffix: str) -> "CatalogStore":
        return cls(db, shard=suffix)

    @contextmanager
    def transaction(self) -> Iterator["CatalogStore"]:
        """One commit for every write in the block; any exception rolls all of them back"""
        with transaction(self.db):
            yield self

    # Refs are only handed out for live rows this store can see
    def product_ref(self, product_id: int) -> InventoryRef:
        self.products.get(product_id)
        return InventoryRef.product(self.shard, product_id)

    def main_spec_ref(self, main_spec_id: int) -> InventoryRef:
        self.main_specs.get(main_spec_id)
        return InventoryRef.main_spec(self.shard, main_spec_id)

    def sub_spec_ref(self, sub_spec_id: int) -> InventoryRef:
        self.sub_specs.get(sub_spec_id)
        return InventoryRef.sub_spec(self.shard, sub_spec_id)

    def reconcile_product_inventory(self, product_id: int, actor: int = 0) -> int:
        self.products.get(product_id)
        return self.inventory.reconcile_product_inventory(self.shard, product_id, actor)

    def create_product_with_specs(
        self,
        product: Union[BaseModel, Dict[str, Any]],
        main_specs: Iterable[Union[BaseModel, Dict[str, Any]]] = (),
        actor: int = 0,
    ) -> Tuple[int, List[int]]:
        """Create a product and its initial main specs atomically.

        Main spec payloads must not carry a product_id; it is filled in here.
        """
        with self.transaction():
            product_id = self.products.create(product, actor)
            main_spec_ids = []
            for spec in main_specs:
                values = spec.model_dump(exclude_unset=True) if isinstance(spec, BaseModel) else dict(spec)
                if values.get("product_id") not in (None, product_id):
                    raise ValidationError("main spec product_id must refer to the product being created")
                values["product_id"] = product_id
                main_spec_ids.append(self.main_specs.create(values, actor))

        logger.info(
            f"Created product {product_id} with {len(main_spec_ids)} main specs on shard {self.shard}"
        )
        return product_id, main_spec_ids

    def product_coding(self, product_id: int) -> str:
        return self.products.get_product_coding(product_id)
