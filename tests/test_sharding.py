# tests/test_sharding.py
import pytest

from sitecatalog.exceptions import ValidationError
from sitecatalog.models import shard_model, shard_models
from sitecatalog.sharding import (
    SHARD_SUFFIXES,
    EntityFamily,
    Shard,
    parse_product_coding,
    product_coding,
    shard_suffix,
    table_name,
)


@pytest.mark.parametrize("site_id", [-101, -23, -10, -1, 0, 1, 9, 23, 1000003])
def test_suffix_is_periodic_and_in_closed_set(site_id):
    suffix = shard_suffix(site_id)
    assert suffix in SHARD_SUFFIXES
    assert shard_suffix(site_id + 10) == suffix
    assert shard_suffix(site_id - 10) == suffix


def test_suffix_letters():
    assert len(SHARD_SUFFIXES) == 10
    assert shard_suffix(0) == "_a"
    assert shard_suffix(9) == "_j"
    assert shard_suffix(23) == "_d"


def test_negative_site_ids_never_produce_negative_shards():
    # -1 mod 10 == 9 -> _j
    assert shard_suffix(-1) == "_j"
    assert shard_suffix(-23) == "_h"


@pytest.mark.parametrize("bad", ["23", 2.5, None, True])
def test_suffix_rejects_non_integers(bad):
    with pytest.raises(ValidationError):
        shard_suffix(bad)


def test_table_name_uses_closed_enumeration():
    assert table_name(EntityFamily.PRODUCT, "_d") == "site_products_d"
    assert table_name("site_product_main_spec", "_a") == "site_product_main_spec_a"

    with pytest.raises(ValidationError):
        table_name(EntityFamily.PRODUCT, "_k")
    with pytest.raises(ValidationError):
        table_name(EntityFamily.PRODUCT, "_a; DROP TABLE site_products_a")
    with pytest.raises(ValidationError):
        table_name("users", "_a")


def test_shard_for_site():
    shard = Shard.for_site(23)
    assert shard == Shard("_d") == Shard.from_suffix("_d")
    assert shard.letter == "d"
    assert str(shard) == "_d"
    assert shard.owns_site(3)
    assert shard.owns_site(-7)
    assert not shard.owns_site(24)
    assert shard.table_name(EntityFamily.IMAGE) == "site_product_images_d"


def test_shard_rejects_unknown_suffix():
    with pytest.raises(ValidationError):
        Shard("_z")
    with pytest.raises(ValidationError):
        Shard.coerce(4)


def test_shard_models_are_bound_to_their_tables():
    models = shard_models("_d")
    assert set(models) == set(EntityFamily)
    for family, model in models.items():
        assert model.__tablename__ == f"{family.value}_d"
        assert model.shard_suffix == "_d"
    assert Shard("_d").model(EntityFamily.PRODUCT) is shard_model(EntityFamily.PRODUCT, "_d")
    assert shard_model(EntityFamily.PRODUCT, "_d") is not shard_model(EntityFamily.PRODUCT, "_e")


def test_product_coding():
    assert product_coding(7, "_d") == "D00000000007"
    assert Shard("_a").product_coding(12345678901) == "A12345678901"

    with pytest.raises(ValidationError):
        product_coding(-1, "_d")
    with pytest.raises(ValidationError):
        product_coding(7, "d")


def test_parse_product_coding():
    shard, product_id = parse_product_coding("D00000000007")
    assert shard == Shard("_d") == Shard.from_suffix("_d")
    assert product_id == 7

    for bad in ["", "d00000000007", "K00000000007", "D0007", "D000000000071"]:
        with pytest.raises(ValidationError):
            parse_product_coding(bad)
