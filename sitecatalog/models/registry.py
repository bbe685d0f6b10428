"""One mapped class per (entity family, shard suffix).

Classes are built once at import from the closed suffix set, so a table can
only be reached through a name the router produced.
"""
from typing import Dict, Tuple, Union

from sitecatalog.db.database import Base
from sitecatalog.exceptions import ValidationError
from sitecatalog.models.category import ProductCategoryLinkMixin, SiteCategoryMixin
from sitecatalog.models.media import ProductImageMixin, ProductVideoMixin
from sitecatalog.models.product import SiteProductMixin
from sitecatalog.models.spec import MainSpecMixin, SubSpecMixin
from sitecatalog.sharding import SHARD_SUFFIXES, EntityFamily, table_name, validate_suffix

_FAMILY_MIXINS = {
    EntityFamily.PRODUCT: ("SiteProduct", SiteProductMixin),
    EntityFamily.MAIN_SPEC: ("SiteProductMainSpec", MainSpecMixin),
    EntityFamily.SUB_SPEC: ("SiteProductSubSpec", SubSpecMixin),
    EntityFamily.CATEGORY: ("SiteProductCategory", SiteCategoryMixin),
    EntityFamily.PRODUCT_CATEGORY: ("SiteProductCategoryLink", ProductCategoryLinkMixin),
    EntityFamily.IMAGE: ("SiteProductImage", ProductImageMixin),
    EntityFamily.VIDEO: ("SiteProductVideo", ProductVideoMixin),
}


def _build_model(family: EntityFamily, suffix: str):
    prefix, mixin = _FAMILY_MIXINS[family]
    return type(
        f"{prefix}{suffix[1:].upper()}",
        (mixin, Base),
        {
            "__tablename__": table_name(family, suffix),
            "__module__": __name__,
            "shard_suffix": suffix,
            "family": family,
        },
    )


_SHARD_MODELS: Dict[Tuple[EntityFamily, str], type] = {
    (family, suffix): _build_model(family, suffix)
    for suffix in SHARD_SUFFIXES
    for family in EntityFamily
}


def shard_model(family: Union[EntityFamily, str], suffix: str):
    try:
        family = EntityFamily(family)
    except ValueError:
        raise ValidationError(f"Unknown entity family: {family!r}") from None
    return _SHARD_MODELS[(family, validate_suffix(suffix))]


def shard_models(suffix: str) -> Dict[EntityFamily, type]:
    """All mapped classes of one shard"""
    validate_suffix(suffix)
    return {family: model for (family, s), model in _SHARD_MODELS.items() if s == suffix}
