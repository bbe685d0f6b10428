"""Shard routing for site-owned catalog tables.

A site's rows live in one of ten parallel tables per entity family. The shard
is picked by ``site_id mod 10`` and named by a one-letter suffix ``_a``..``_j``.
Table names are only ever produced from this closed set, never from caller
supplied strings.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union
import re

from sitecatalog.exceptions import ValidationError

SHARD_COUNT = 10
SHARD_LETTERS = tuple(chr(ord("a") + i) for i in range(SHARD_COUNT))
SHARD_SUFFIXES = tuple(f"_{letter}" for letter in SHARD_LETTERS)

PRODUCT_CODE_DIGITS = 11
_PRODUCT_CODE_RE = re.compile(rf"^([A-J])(\d{{{PRODUCT_CODE_DIGITS}}})$")


class EntityFamily(str, Enum):
    """Sharded entity families and their base table names"""

    PRODUCT = "site_products"
    MAIN_SPEC = "site_product_main_spec"
    SUB_SPEC = "site_product_sub_spec"
    CATEGORY = "site_product_categories"
    PRODUCT_CATEGORY = "site_product_category"
    IMAGE = "site_product_images"
    VIDEO = "site_product_videos"


def _require_int(value, name: str) -> int:
    # bool is an int subclass but never a valid identifier
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    return value


def shard_suffix(site_id: int) -> str:
    """Map a site id to its shard suffix.

    Python's ``%`` with a positive modulus is never negative, so negative site
    ids land on the same ten shards.
    """
    site_id = _require_int(site_id, "site_id")
    return SHARD_SUFFIXES[site_id % SHARD_COUNT]


def validate_suffix(suffix: str) -> str:
    if suffix not in SHARD_SUFFIXES:
        raise ValidationError(f"Unknown shard suffix: {suffix!r}")
    return suffix


def table_name(family: Union[EntityFamily, str], suffix: str) -> str:
    """Concrete table name for an entity family on one shard"""
    try:
        family = EntityFamily(family)
    except ValueError:
        raise ValidationError(f"Unknown entity family: {family!r}") from None
    return f"{family.value}{validate_suffix(suffix)}"


def product_coding(product_id: int, suffix: str) -> str:
    """Human readable product code, e.g. ``product_coding(7, "_d") == "D00000000007"``"""
    product_id = _require_int(product_id, "product_id")
    if product_id < 0:
        raise ValidationError(f"product_id must be non-negative, got {product_id}")
    letter = validate_suffix(suffix).lstrip("_").upper()
    return f"{letter}{product_id:0{PRODUCT_CODE_DIGITS}d}"


def parse_product_coding(code: str) -> Tuple["Shard", int]:
    """Inverse of product_coding"""
    match = _PRODUCT_CODE_RE.match(code or "")
    if not match:
        raise ValidationError(f"Malformed product code: {code!r}")
    letter, digits = match.groups()
    return Shard(f"_{letter.lower()}"), int(digits)


@dataclass(frozen=True)
class Shard:
    """A resolved shard; every repository in one operation shares the same instance"""

    suffix: str

    def __post_init__(self):
        validate_suffix(self.suffix)

    @classmethod
    def for_site(cls, site_id: int) -> "Shard":
        return cls(shard_suffix(site_id))

    @classmethod
    def from_suffix(cls, suffix: str) -> "Shard":
        return cls(suffix)

    @classmethod
    def coerce(cls, value: Union["Shard", str]) -> "Shard":
        if isinstance(value, Shard):
            return value
        if isinstance(value, str):
            return cls(value)
        raise ValidationError(f"Expected a Shard or shard suffix, got {value!r}")

    @property
    def letter(self) -> str:
        return self.suffix[1:]

    def table_name(self, family: Union[EntityFamily, str]) -> str:
        return table_name(family, self.suffix)

    def model(self, family: Union[EntityFamily, str]):
        """Mapped ORM class for ``family`` on this shard"""
        from sitecatalog.models.registry import shard_model

        return shard_model(family, self.suffix)

    def owns_site(self, site_id: int) -> bool:
        return shard_suffix(site_id) == self.suffix

    def product_coding(self, product_id: int) -> str:
        return product_coding(product_id, self.suffix)

    def __str__(self) -> str:
        return self.suffix
