"""Attributed, race-free stock changes for products, main specs and sub specs.

Every write is a single conditional UPDATE, so concurrent checkouts cannot
overwrite each other with values computed from stale reads. Stock never goes
negative: a decrement that does not fit raises InsufficientStockError instead
of clamping. Actor 0 is the system (e.g. order fulfilment); positive actors
are operators.

A product's ``inventory`` is a denormalized total that is allowed to drift from
its main specs. Nothing re-aggregates it implicitly; callers run
``reconcile_product_inventory`` when they want the totals to agree.
"""
from dataclasses import dataclass
from typing import Optional, Union
import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from sitecatalog.db.database import commit_or_flush, storage_errors
from sitecatalog.exceptions import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from sitecatalog.sharding import EntityFamily, Shard
from sitecatalog.soft_delete import live_clause, primary_key

logger = logging.getLogger(__name__)

INVENTORY_FAMILIES = (EntityFamily.PRODUCT, EntityFamily.MAIN_SPEC, EntityFamily.SUB_SPEC)


def _require_non_negative(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


@dataclass(frozen=True)
class InventoryRef:
    """Shard-qualified key of a stock-carrying row"""

    family: EntityFamily
    shard: Shard
    entity_id: int

    def __post_init__(self):
        try:
            family = EntityFamily(self.family)
        except ValueError:
            raise ValidationError(f"Unknown entity family: {self.family!r}") from None
        if family not in INVENTORY_FAMILIES:
            raise ValidationError(f"{family.value} does not carry inventory")
        object.__setattr__(self, "family", family)
        object.__setattr__(self, "shard", Shard.coerce(self.shard))

    @classmethod
    def product(cls, shard: Union[Shard, str], product_id: int) -> "InventoryRef":
        return cls(EntityFamily.PRODUCT, shard, product_id)

    @classmethod
    def main_spec(cls, shard: Union[Shard, str], main_spec_id: int) -> "InventoryRef":
        return cls(EntityFamily.MAIN_SPEC, shard, main_spec_id)

    @classmethod
    def sub_spec(cls, shard: Union[Shard, str], sub_spec_id: int) -> "InventoryRef":
        return cls(EntityFamily.SUB_SPEC, shard, sub_spec_id)

    @property
    def model(self):
        return self.shard.model(self.family)

    def __str__(self) -> str:
        return f"{self.shard.table_name(self.family)}#{self.entity_id}"


class InventoryMutator:
    """The only write path for ``inventory`` columns"""

    def __init__(self, db: Session):
        self.db = db

    def _current(self, ref: InventoryRef) -> Optional[int]:
        model = ref.model
        return self.db.execute(
            select(model.inventory).where(primary_key(model) == ref.entity_id, live_clause(model))
        ).scalar_one_or_none()

    def _apply(self, ref: InventoryRef, operation: str, condition, value, actor: int):
        """Run one conditional UPDATE.

        Returns ``(new_value, new_value)`` on success and ``(None, current)``
        when nothing matched; ``current`` is None for a missing or deleted row.
        """
        model = ref.model
        pk = primary_key(model)
        statement = update(model).where(pk == ref.entity_id, live_clause(model))
        if condition is not None:
            statement = statement.where(condition)
        statement = statement.values(inventory=value, updated_by=actor)

        with storage_errors(self.db, f"{operation} {ref}"):
            result = self.db.execute(statement)
            if result.rowcount == 0:
                current = self._current(ref)
                commit_or_flush(self.db)
                return None, current
            # Read inside the same transaction, before the row lock is released
            new_value = self._current(ref)
            commit_or_flush(self.db)

        logger.info(f"Inventory {operation} on {ref} by actor {actor}: now {new_value}")
        return new_value, new_value

    def adjust_inventory(self, ref: InventoryRef, new_value: int, actor: int, expected: Optional[int] = None) -> int:
        """Set stock to an absolute value.

        With ``expected`` the write only lands if the stored value still equals
        it (compare-and-swap); otherwise ConflictError.
        """
        new_value = _require_non_negative(new_value, "inventory")
        actor = _require_non_negative(actor, "actor")
        condition = None
        if expected is not None:
            expected = _require_non_negative(expected, "expected")
            condition = ref.model.inventory == expected

        value, current = self._apply(ref, "set", condition, new_value, actor)
        if value is None:
            if current is None:
                raise NotFoundError(ref.family.value, ref.entity_id)
            raise ConflictError(f"Inventory of {ref} is {current}, expected {expected}")
        return value

    def decrement(self, ref: InventoryRef, delta: int, actor: int) -> int:
        """Atomically take ``delta`` units; InsufficientStockError if stock < delta"""
        delta = self._require_delta(delta)
        actor = _require_non_negative(actor, "actor")
        model = ref.model

        value, current = self._apply(ref, "decrement", model.inventory >= delta, model.inventory - delta, actor)
        if value is None:
            if current is None:
                raise NotFoundError(ref.family.value, ref.entity_id)
            logger.warning(f"Rejected decrement of {delta} on {ref}: only {current} left")
            raise InsufficientStockError(ref.family.value, ref.entity_id, delta, current)
        return value

    def increment(self, ref: InventoryRef, delta: int, actor: int) -> int:
        """Atomically add ``delta`` units"""
        delta = self._require_delta(delta)
        actor = _require_non_negative(actor, "actor")
        model = ref.model

        value, _ = self._apply(ref, "increment", None, model.inventory + delta, actor)
        if value is None:
            raise NotFoundError(ref.family.value, ref.entity_id)
        return value

    def reconcile_product_inventory(self, shard: Union[Shard, str], product_id: int, actor: int) -> int:
        """Set a product's inventory to the sum of its live main specs"""
        shard = Shard.coerce(shard)
        main_spec = shard.model(EntityFamily.MAIN_SPEC)
        total = (
            select(func.coalesce(func.sum(main_spec.inventory), 0))
            .where(main_spec.product_id == product_id, live_clause(main_spec))
            .scalar_subquery()
        )
        return self._reconcile(InventoryRef.product(shard, product_id), total, actor)

    def reconcile_main_spec_inventory(self, shard: Union[Shard, str], main_spec_id: int, actor: int) -> int:
        """Set a main spec's inventory to the sum of its live sub specs"""
        shard = Shard.coerce(shard)
        sub_spec = shard.model(EntityFamily.SUB_SPEC)
        total = (
            select(func.coalesce(func.sum(sub_spec.inventory), 0))
            .where(sub_spec.main_spec_id == main_spec_id, live_clause(sub_spec))
            .scalar_subquery()
        )
        return self._reconcile(InventoryRef.main_spec(shard, main_spec_id), total, actor)

    def _reconcile(self, ref: InventoryRef, total, actor: int) -> int:
        actor = _require_non_negative(actor, "actor")
        model = ref.model
        statement = (
            update(model)
            .where(primary_key(model) == ref.entity_id, live_clause(model))
            .values(inventory=total, updated_by=actor)
            .execution_options(synchronize_session="fetch")
        )
        with storage_errors(self.db, f"reconcile {ref}"):
            result = self.db.execute(statement)
            if result.rowcount == 0:
                commit_or_flush(self.db)
                raise NotFoundError(ref.family.value, ref.entity_id)
            new_value = self._current(ref)
            commit_or_flush(self.db)

        logger.info(f"Reconciled inventory of {ref} by actor {actor}: now {new_value}")
        return new_value

    @staticmethod
    def _require_delta(delta) -> int:
        delta = _require_non_negative(delta, "delta")
        if delta == 0:
            raise ValidationError("delta must be positive")
        return delta
