# tests/test_store.py
import pytest

from sitecatalog.exceptions import NotFoundError, StorageError, ValidationError
from sitecatalog.sharding import EntityFamily, Shard
from sitecatalog.store import CatalogStore


def test_store_resolves_shard_once(store):
    assert store.shard == Shard("_d")
    for service in (store.products, store.main_specs, store.sub_specs, store.categories,
                    store.product_categories, store.images, store.videos):
        assert service.shard is store.shard
        assert service.model.shard_suffix == "_d"


def test_store_requires_site_or_shard(db_session):
    with pytest.raises(ValidationError):
        CatalogStore(db_session)
    with pytest.raises(ValidationError):
        CatalogStore(db_session, site_id=23, shard="_e")
    assert CatalogStore(db_session, site_id=23, shard="_d").shard == Shard("_d")
    with pytest.raises(ValidationError):
        CatalogStore.for_suffix(db_session, "_q")


def test_end_to_end_site_23(store, db_session):
    product_id = store.products.create({"name": "Trail Runner", "inventory": 4})
    main_spec_id = store.main_specs.create({"product_id": product_id, "name": "Black", "inventory": 4})
    image_id = store.images.create({"product_id": product_id, "img_url": "https://img/run.jpg"})

    assert type(store.main_specs.get(main_spec_id)).__tablename__ == "site_product_main_spec_d"
    assert type(store.images.get(image_id)).__tablename__ == "site_product_images_d"
    assert store.shard.product_coding(7) == "D00000000007"
    assert store.product_coding(product_id) == f"D{product_id:011d}"


def test_children_cannot_reference_another_shard(db_session):
    other = CatalogStore.for_site(db_session, 24)
    foreign_product = other.products.create({"name": "Other site"})

    store = CatalogStore.for_site(db_session, 23)
    with pytest.raises(NotFoundError):
        store.main_specs.create({"product_id": foreign_product, "name": "Cross shard"})
    with pytest.raises(NotFoundError):
        store.images.create({"product_id": foreign_product, "img_url": "https://img/x.jpg"})


def test_create_product_with_specs(store):
    product_id, spec_ids = store.create_product_with_specs(
        {"name": "Hoodie", "inventory": 6},
        [{"name": "S", "inventory": 2}, {"name": "M", "inventory": 4}],
        actor=3,
    )
    specs = store.main_specs.list_by_product(product_id)
    assert [s.main_spec_id for s in specs] == spec_ids
    assert all(s.created_by == 3 for s in specs)


def test_create_product_with_specs_rolls_back_on_failure(store, db_session):
    with pytest.raises(ValidationError):
        store.create_product_with_specs(
            {"name": "Hoodie"},
            [{"name": "S", "inventory": 2}, {"name": "M", "inventory": -4}],
        )

    Product = store.shard.model(EntityFamily.PRODUCT)
    MainSpec = store.shard.model(EntityFamily.MAIN_SPEC)
    assert db_session.query(Product).count() == 0
    assert db_session.query(MainSpec).count() == 0


def test_transaction_groups_writes(store, db_session):
    with pytest.raises(RuntimeError):
        with store.transaction():
            product_id = store.products.create({"name": "Scarf", "inventory": 2})
            store.inventory.decrement(store.product_ref(product_id), 1, actor=0)
            raise RuntimeError("abort")

    assert db_session.query(store.shard.model(EntityFamily.PRODUCT)).count() == 0

    with store.transaction():
        product_id = store.products.create({"name": "Scarf", "inventory": 2})
        store.inventory.decrement(store.product_ref(product_id), 1, actor=0)
    assert store.products.get(product_id).inventory == 1


def test_storage_failures_are_not_swallowed(store, db_engine):
    product_id = store.products.create({"name": "Mug"})
    store.shard.model(EntityFamily.MAIN_SPEC).__table__.drop(db_engine)

    with pytest.raises(StorageError) as exc_info:
        store.main_specs.list_by_product(product_id)
    assert exc_info.value.__cause__ is not None
    with pytest.raises(StorageError):
        store.reconcile_product_inventory(product_id)


def test_sites_sharing_a_shard_cannot_reach_each_other(db_session):
    site_3 = CatalogStore.for_site(db_session, 3)
    site_23 = CatalogStore.for_site(db_session, 23)
    assert site_3.shard == site_23.shard

    product_id = site_3.products.create({"name": "Site 3 product", "inventory": 4})
    main_spec_id = site_3.main_specs.create({"product_id": product_id, "name": "Red", "inventory": 4})
    category_id = site_3.categories.create({"name": "Bags"})
    image_id = site_3.images.create({"product_id": product_id, "img_url": "https://img/3.jpg"})

    with pytest.raises(NotFoundError):
        site_23.products.get(product_id)
    with pytest.raises(NotFoundError):
        site_23.products.update(product_id, {"name": "Renamed"})
    with pytest.raises(NotFoundError):
        site_23.products.delete(product_id)
    with pytest.raises(NotFoundError):
        site_23.main_specs.get(main_spec_id)
    with pytest.raises(NotFoundError):
        site_23.main_specs.create({"product_id": product_id, "name": "Blue"})
    with pytest.raises(NotFoundError):
        site_23.product_categories.assign(product_id, category_id)
    with pytest.raises(NotFoundError):
        site_23.images.set_cover(image_id)
    with pytest.raises(NotFoundError):
        site_23.product_ref(product_id)
    with pytest.raises(ValidationError):
        site_23.products.create({"site_id": 3, "name": "Smuggled"})

    own_category = site_23.categories.create({"name": "Own"})
    with pytest.raises(NotFoundError):
        site_23.categories.update(own_category, {"parent_id": category_id})

    site_3.products.delete(product_id)
    with pytest.raises(NotFoundError):
        site_23.products.restore(product_id)
    assert site_3.products.restore(product_id) is True

    product = site_3.products.get(product_id)
    assert product.name == "Site 3 product"
    assert product.updated_by == 0
    assert [s.main_spec_id for s in site_3.main_specs.list_by_product(product_id)] == [main_spec_id]
    assert site_23.main_specs.list_by_product(product_id) == []
    assert site_3.images.get_cover(product_id) is None
