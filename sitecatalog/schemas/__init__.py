# Package exports - these allow cleaner imports like:
# from sitecatalog.schemas import ProductCreate, ProductResponse
from sitecatalog.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductFilters,
    ProductResponse,
    ProductListResponse,
)
from sitecatalog.schemas.spec import MainSpecCreate, MainSpecUpdate, SubSpecCreate, SubSpecUpdate
from sitecatalog.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    ProductCategoryCreate,
    PlatformCategoryCreate,
    PlatformCategoryUpdate,
)
from sitecatalog.schemas.media import ProductImageCreate, ProductImageUpdate, ProductVideoCreate, ProductVideoUpdate
