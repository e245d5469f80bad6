"""
Tests for stock movements (``crud_inventory_log``).

Invariants tested:
- Every stock change appends a log entry with new = previous + change.
- Stock never goes negative; a rejected change writes nothing.
- The sum of a product's logged changes equals its current stock.
"""
import pytest
from sqlalchemy import select

from hostel_store.crud.catalog import crud_product
from hostel_store.crud.inventory import crud_inventory_log
from hostel_store.exceptions import InsufficientStockError, ProductNotFoundError
from hostel_store.models import InventoryAction, InventoryLog


def logs_for(db, product):
    return db.execute(
        select(InventoryLog).where(InventoryLog.product_id == product.id).order_by(InventoryLog.id)
    ).scalars().all()


class TestOpeningStock:
    def test_opening_stock_logged_as_restock(self, db, admin, make_product):
        product = make_product(stock=12)

        logs = logs_for(db, product)
        assert product.stock == 12
        assert len(logs) == 1
        assert logs[0].action == InventoryAction.RESTOCK.value
        assert logs[0].quantity_change == 12
        assert logs[0].previous_stock == 0
        assert logs[0].reason == "Opening stock"
        assert logs[0].user_id == admin.id

    def test_zero_opening_stock_writes_no_log(self, db, make_product):
        product = make_product(stock=0)
        assert logs_for(db, product) == []


class TestAdjustStock:
    def test_restock(self, db, admin, make_product):
        product = make_product(stock=5)

        updated = crud_inventory_log.adjust_stock(db, product_id=product.id, quantity=7, user_id=admin.id)

        entry = logs_for(db, product)[-1]
        assert updated.stock == 12
        assert entry.action == "restock"
        assert entry.reason == "Restock"
        assert (entry.previous_stock, entry.quantity_change, entry.new_stock) == (5, 7, 12)

    def test_negative_change_is_adjustment(self, db, admin, make_product):
        product = make_product(stock=5)

        updated = crud_inventory_log.adjust_stock(
            db, product_id=product.id, quantity=-2, user_id=admin.id, reason="Damaged"
        )

        entry = logs_for(db, product)[-1]
        assert updated.stock == 3
        assert entry.action == "adjustment"
        assert entry.reason == "Damaged"
        assert entry.new_stock == entry.previous_stock + entry.quantity_change

    def test_zero_change_is_logged_adjustment(self, db, admin, make_product):
        product = make_product(stock=5)

        crud_inventory_log.adjust_stock(db, product_id=product.id, quantity=0, user_id=admin.id)

        entry = logs_for(db, product)[-1]
        assert entry.action == "adjustment"
        assert entry.quantity_change == 0

    def test_drain_to_zero_is_allowed(self, db, admin, make_product):
        product = make_product(stock=5)

        updated = crud_inventory_log.adjust_stock(db, product_id=product.id, quantity=-5, user_id=admin.id)

        assert updated.stock == 0

    def test_overdrain_rejected_without_writes(self, db, admin, make_product):
        product = make_product(stock=5)

        with pytest.raises(InsufficientStockError) as exc_info:
            crud_inventory_log.adjust_stock(db, product_id=product.id, quantity=-6, user_id=admin.id)

        db.refresh(product)
        assert exc_info.value.available == 5
        assert exc_info.value.requested == 6
        assert product.stock == 5
        assert len(logs_for(db, product)) == 1

    def test_unknown_product(self, db, admin):
        with pytest.raises(ProductNotFoundError):
            crud_inventory_log.adjust_stock(db, product_id=9999, quantity=1, user_id=admin.id)


class TestReconstructStock:
    def test_sum_of_changes_matches_stock(self, db, admin, make_product):
        product = make_product(stock=10)
        for change in (5, -3, -12, 4):
            crud_inventory_log.adjust_stock(db, product_id=product.id, quantity=change, user_id=admin.id)

        db.refresh(product)
        assert product.stock == 4
        assert crud_inventory_log.reconstruct_stock(db, product.id) == product.stock

    def test_product_without_logs(self, db, make_product):
        product = make_product(stock=0)
        assert crud_inventory_log.reconstruct_stock(db, product.id) == 0

    def test_product_logs_newest_first(self, db, admin, make_product):
        product = make_product(stock=1)
        crud_inventory_log.adjust_stock(db, product_id=product.id, quantity=2, user_id=admin.id)

        logs = crud_inventory_log.get_product_logs(db, product.id)

        assert [entry.quantity_change for entry in logs] == [2, 1]


class TestProductRemoval:
    def test_product_with_history_is_deactivated(self, db, make_product):
        product = make_product(stock=3)

        removed, deleted = crud_product.remove_product(db, id=product.id)

        assert deleted is False
        assert removed.is_active is False
        assert crud_product.get(db, product.id) is not None

    def test_product_without_history_is_deleted(self, db, make_product):
        product = make_product(stock=0)

        _, deleted = crud_product.remove_product(db, id=product.id)

        assert deleted is True
        assert crud_product.get(db, product.id) is None
