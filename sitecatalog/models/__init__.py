# Package exports - importing this package registers every shard table on Base.metadata
from sitecatalog.models.product import ProductStatus
from sitecatalog.models.platform_category import PlatformProductCategory
from sitecatalog.models.registry import shard_model, shard_models

__all__ = [
    "ProductStatus",
    "PlatformProductCategory",
    "shard_model",
    "shard_models",
]
