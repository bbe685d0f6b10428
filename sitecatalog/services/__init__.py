from sitecatalog.services.base import CatalogService, ShardedService
from sitecatalog.services.product_service import ProductService
from sitecatalog.services.spec_service import MainSpecService, SubSpecService
from sitecatalog.services.category_service import CategoryService, ProductCategoryService, PlatformCategoryService
from sitecatalog.services.media_service import ProductImageService, ProductVideoService

__all__ = [
    "CatalogService",
    "ShardedService",
    "ProductService",
    "MainSpecService",
    "SubSpecService",
    "CategoryService",
    "ProductCategoryService",
    "PlatformCategoryService",
    "ProductImageService",
    "ProductVideoService",
]
