# tests/test_inventory.py
import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from sitecatalog.db.database import create_tables
from sitecatalog.exceptions import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from sitecatalog.inventory import InventoryMutator, InventoryRef
from sitecatalog.sharding import EntityFamily, Shard
from sitecatalog.store import CatalogStore


@pytest.fixture
def main_spec_id(store, product_id):
    return store.main_specs.create({"product_id": product_id, "name": "Red", "inventory": 5})


@pytest.fixture
def sub_spec_id(store, main_spec_id):
    return store.sub_specs.create({"main_spec_id": main_spec_id, "name": "M", "inventory": 5})


def test_adjust_rejects_negative_value(store, product_id):
    with pytest.raises(ValidationError):
        store.inventory.adjust_inventory(store.product_ref(product_id), -1, actor=1)
    assert store.products.get(product_id).inventory == 10


def test_adjust_to_zero(store, product_id):
    assert store.inventory.adjust_inventory(store.product_ref(product_id), 0, actor=1) == 0
    product = store.products.get(product_id)
    assert product.inventory == 0
    assert product.updated_by == 1


def test_adjust_compare_and_swap(store, sub_spec_id):
    ref = store.sub_spec_ref(sub_spec_id)
    assert store.inventory.adjust_inventory(ref, 8, actor=0, expected=5) == 8

    with pytest.raises(ConflictError):
        store.inventory.adjust_inventory(ref, 1, actor=0, expected=5)
    assert store.sub_specs.get(sub_spec_id).inventory == 8


def test_adjust_missing_or_deleted_row(store, product_id):
    with pytest.raises(NotFoundError):
        store.inventory.adjust_inventory(InventoryRef.product(store.shard, 999), 1, actor=0)

    store.products.delete(product_id, actor=1)
    with pytest.raises(NotFoundError):
        store.inventory.adjust_inventory(InventoryRef.product(store.shard, product_id), 1, actor=0)


def test_decrement_and_increment(store, main_spec_id):
    ref = store.main_spec_ref(main_spec_id)
    assert store.inventory.decrement(ref, 2, actor=0) == 3
    assert store.inventory.increment(ref, 4, actor=7) == 7
    spec = store.main_specs.get(main_spec_id)
    assert spec.inventory == 7
    assert spec.updated_by == 7


def test_decrement_never_goes_negative(store, sub_spec_id):
    ref = store.sub_spec_ref(sub_spec_id)
    with pytest.raises(InsufficientStockError) as exc_info:
        store.inventory.decrement(ref, 6, actor=0)

    assert isinstance(exc_info.value, ConflictError)
    assert exc_info.value.requested == 6
    assert exc_info.value.available == 5
    assert store.sub_specs.get(sub_spec_id).inventory == 5

    assert store.inventory.decrement(ref, 5, actor=0) == 0


@pytest.mark.parametrize("delta", [0, -1, 1.5, True])
def test_delta_must_be_positive_integer(store, sub_spec_id, delta):
    with pytest.raises(ValidationError):
        store.inventory.decrement(store.sub_spec_ref(sub_spec_id), delta, actor=0)


def test_actor_must_be_non_negative(store, sub_spec_id):
    with pytest.raises(ValidationError):
        store.inventory.increment(store.sub_spec_ref(sub_spec_id), 1, actor=-1)


def test_ref_only_accepts_stock_families():
    assert InventoryRef(EntityFamily.SUB_SPEC, "_d", 1).shard == Shard("_d")
    assert str(InventoryRef.product("_d", 7)) == "site_products_d#7"
    with pytest.raises(ValidationError):
        InventoryRef(EntityFamily.IMAGE, "_d", 1)
    with pytest.raises(ValidationError):
        InventoryRef.product("_x", 1)


def test_reconcile_product_inventory(store, product_id, main_spec_id):
    store.main_specs.create({"product_id": product_id, "name": "Blue", "inventory": 4})
    deleted = store.main_specs.create({"product_id": product_id, "name": "Green", "inventory": 100})
    store.main_specs.delete(deleted, actor=1)

    # Totals drift until reconciled
    assert store.products.get(product_id).inventory == 10
    assert store.reconcile_product_inventory(product_id, actor=3) == 9
    product = store.products.get(product_id)
    assert product.inventory == 9
    assert product.updated_by == 3


def test_reconcile_without_specs_sets_zero(store, product_id):
    assert store.reconcile_product_inventory(product_id) == 0


def test_reconcile_main_spec_inventory(store, main_spec_id, sub_spec_id):
    store.sub_specs.create({"main_spec_id": main_spec_id, "name": "L", "inventory": 2})
    assert store.inventory.reconcile_main_spec_inventory(store.shard, main_spec_id, actor=0) == 7
    assert store.main_specs.get(main_spec_id).inventory == 7


def test_reconcile_missing_product(store):
    with pytest.raises(NotFoundError):
        store.reconcile_product_inventory(404)


def test_inventory_is_not_editable_through_update(store, product_id):
    with pytest.raises(ValidationError):
        store.products.update(product_id, {"inventory": 99})


def test_concurrent_decrements_never_oversell(tmp_path):
    """Two checkouts race for 3 of 5 units: one wins, one gets a conflict"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'catalog.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    create_tables(engine)
    Session = sessionmaker(autoflush=False, bind=engine)

    setup = Session()
    store = CatalogStore.for_site(setup, 23)
    product_id = store.products.create({"name": "Sneaker", "inventory": 5})
    main_spec_id = store.main_specs.create({"product_id": product_id, "name": "White"})
    sub_spec_id = store.sub_specs.create({"main_spec_id": main_spec_id, "name": "42", "inventory": 5})
    setup.close()

    ref = InventoryRef.sub_spec("_d", sub_spec_id)
    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def checkout():
        session = Session()
        try:
            barrier.wait()
            try:
                InventoryMutator(session).decrement(ref, 3, actor=0)
                result = "ok"
            except InsufficientStockError:
                result = "conflict"
            with lock:
                outcomes.append(result)
        finally:
            session.close()

    threads = [threading.Thread(target=checkout) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    check = Session()
    try:
        remaining = CatalogStore.for_site(check, 23).sub_specs.get(sub_spec_id).inventory
    finally:
        check.close()
        engine.dispose()

    assert sorted(outcomes) == ["conflict", "ok"]
    assert remaining == 2


def test_spec_inventory_is_not_editable_through_update(store, main_spec_id):
    with pytest.raises(ValidationError):
        store.main_specs.update(main_spec_id, {"inventory": 1, "name": "Crimson"})
    assert store.main_specs.get(main_spec_id).name == "Red"


def test_rejected_writes_leave_no_open_transaction(store, db_session, sub_spec_id):
    ref = store.sub_spec_ref(sub_spec_id)
    with pytest.raises(InsufficientStockError):
        store.inventory.decrement(ref, 6, actor=0)
    assert not db_session.in_transaction()

    with pytest.raises(ConflictError):
        store.inventory.adjust_inventory(ref, 1, actor=0, expected=4)
    assert not db_session.in_transaction()

    with pytest.raises(NotFoundError):
        store.inventory.reconcile_main_spec_inventory(store.shard, 404, actor=0)
    assert not db_session.in_transaction()
