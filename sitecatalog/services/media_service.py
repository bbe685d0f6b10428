from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import update

from sitecatalog.db.database import storage_errors, transaction
from sitecatalog.schemas.media import ProductImageCreate, ProductImageUpdate, ProductVideoCreate, ProductVideoUpdate
from sitecatalog.services.base import ShardedService, validate_actor
from sitecatalog.sharding import EntityFamily
from sitecatalog.soft_delete import live_clause

logger = logging.getLogger(__name__)


class ProductImageService(ShardedService):
    family = EntityFamily.IMAGE
    create_schema = ProductImageCreate
    update_schema = ProductImageUpdate
    label = "ProductImage"

    def _prepare_create(self, payload: ProductImageCreate) -> Dict[str, Any]:
        self._require_live(EntityFamily.PRODUCT, payload.product_id, "Product")
        return payload.model_dump()

    def create(self, data, actor: int = 0) -> int:
        payload = self._parse(self.create_schema, data)
        if not payload.cover_pic:
            return super().create(payload, actor)
        # A new cover replaces the old one in the same transaction
        with transaction(self.db):
            image_id = super().create(payload.model_copy(update={"cover_pic": False}), actor)
            self.set_cover(image_id, actor)
        return image_id

    def list_by_product(self, product_id: int, page: int = 1, page_size: Optional[int] = None) -> List:
        return self._list_by(self.model.product_id, product_id, page, page_size)

    def get_cover(self, product_id: int):
        """The live cover image of a product, or None"""
        Image = self.model
        with storage_errors(self.db, f"get cover of product {product_id}"):
            return (
                self._live_query()
                .filter(Image.product_id == product_id, Image.cover_pic.is_(True))
                .order_by(Image.id.asc())
                .first()
            )

    def set_cover(self, image_id: int, actor: int = 0):
        """Make one image the product's only live cover picture"""
        actor = validate_actor(actor)
        image = self.get(image_id)
        Image = self.model
        with transaction(self.db), storage_errors(self.db, f"set cover image {image_id}"):
            self.db.execute(
                update(Image)
                .where(
                    Image.product_id == image.product_id,
                    Image.id != image_id,
                    Image.cover_pic.is_(True),
                    live_clause(Image),
                )
                .values(cover_pic=False, updated_by=actor)
            )
            self.db.execute(
                update(Image)
                .where(Image.id == image_id)
                .values(cover_pic=True, updated_by=actor)
            )
        logger.info(f"Image {self.model.__tablename__}#{image_id} is now the cover of product {image.product_id}")
        self.db.refresh(image)
        return image


class ProductVideoService(ShardedService):
    family = EntityFamily.VIDEO
    create_schema = ProductVideoCreate
    update_schema = ProductVideoUpdate
    label = "ProductVideo"

    def _prepare_create(self, payload: ProductVideoCreate) -> Dict[str, Any]:
        self._require_live(EntityFamily.PRODUCT, payload.product_id, "Product")
        return payload.model_dump()

    def list_by_product(self, product_id: int, page: int = 1, page_size: Optional[int] = None) -> List:
        return self._list_by(self.model.product_id, product_id, page, page_size)
