from typing import Any, Dict, List, Optional

from sitecatalog.schemas.spec import MainSpecCreate, MainSpecUpdate, SubSpecCreate, SubSpecUpdate
from sitecatalog.services.base import ShardedService
from sitecatalog.sharding import EntityFamily


class MainSpecService(ShardedService):
    """Variant groups of a product; always written to the product's shard"""

    family = EntityFamily.MAIN_SPEC
    create_schema = MainSpecCreate
    update_schema = MainSpecUpdate
    label = "MainSpec"

    def _prepare_create(self, payload: MainSpecCreate) -> Dict[str, Any]:
        self._require_live(EntityFamily.PRODUCT, payload.product_id, "Product")
        return payload.model_dump()

    def list_by_product(self, product_id: int, page: int = 1, page_size: Optional[int] = None) -> List:
        return self._list_by(self.model.product_id, product_id, page, page_size)


class SubSpecService(ShardedService):
    """Variants under a main spec"""

    family = EntityFamily.SUB_SPEC
    create_schema = SubSpecCreate
    update_schema = SubSpecUpdate
    label = "SubSpec"

    def _prepare_create(self, payload: SubSpecCreate) -> Dict[str, Any]:
        self._require_live(EntityFamily.MAIN_SPEC, payload.main_spec_id, "MainSpec")
        return payload.model_dump()

    def list_by_main_spec(self, main_spec_id: int, page: int = 1, page_size: Optional[int] = None) -> List:
        return self._list_by(self.model.main_spec_id, main_spec_id, page, page_size)
