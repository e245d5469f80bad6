"""
Tests for the sale workflow (``crud_transaction.process_sale``).

A sale either stores all of its effects (transaction record, balance debit,
stock decrements, one inventory log entry per line) or none of them.
"""
from decimal import Decimal

import pytest
import pydantic
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from hostel_store.crud import transaction as transaction_module
from hostel_store.crud.inventory import crud_inventory_log
from hostel_store.crud.transaction import crud_transaction, order_total
from hostel_store.exceptions import (
    InsufficientBalanceError,
    InsufficientStockError,
    PersistenceError,
    ProductNotFoundError,
    StudentNotFoundError,
    ValidationError,
)
from hostel_store.models import InventoryLog, Transaction, TransactionStatus
from hostel_store.schemas.transaction import SaleItem


def line(product, quantity, price=None):
    return SaleItem(product_id=product.id, quantity=quantity, price=Decimal(price or product.price))


def count_rows(db, model):
    return db.execute(select(func.count(model.id))).scalar_one()


class TestSuccessfulSale:
    def test_debits_balance_and_stock(self, db, seller, make_student, make_product):
        """Balance 100.00, two units at 30.00: balance drops to 40.00."""
        student = make_student(balance="100.00")
        product = make_product(price="30.00", stock=10)

        sale = crud_transaction.process_sale(
            db, student_ref=str(student.id), items=[line(product, 2)], seller_id=seller.id
        )

        db.refresh(student)
        db.refresh(product)
        assert sale.total_amount == Decimal("60.00")
        assert sale.status == TransactionStatus.COMPLETED.value
        assert sale.seller_id == seller.id
        assert student.balance == Decimal("40.00")
        assert product.stock == 8

    def test_logs_one_sale_entry_per_line(self, db, seller, make_student, make_product):
        student = make_student(balance="100.00")
        product = make_product(price="30.00", stock=10)

        sale = crud_transaction.process_sale(
            db, student_ref=str(student.id), items=[line(product, 2)], seller_id=seller.id
        )

        logs = db.execute(
            select(InventoryLog).where(InventoryLog.action == "sale")
        ).scalars().all()
        assert len(logs) == 1
        assert logs[0].quantity_change == -2
        assert logs[0].previous_stock == 10
        assert logs[0].new_stock == 8
        assert logs[0].user_id == seller.id
        assert logs[0].reason == f"Sale - Transaction #{sale.id}"

    def test_items_keep_cart_order(self, db, seller, make_student, make_product):
        student = make_student(balance="100.00")
        first = make_product(price="1.00")
        second = make_product(price="2.00")

        sale = crud_transaction.process_sale(
            db,
            student_ref=str(student.id),
            items=[line(second, 1), line(first, 3)],
            seller_id=seller.id,
        )

        assert [item.product_id for item in sale.items] == [second.id, first.id]
        assert [item.quantity for item in sale.items] == [1, 3]

    def test_total_is_sum_of_lines(self, db, seller, make_student, make_product):
        student = make_student(balance="100.00")
        pen = make_product(price="12.50")
        soap = make_product(price="0.35")
        items = [line(pen, 2), line(soap, 3)]

        sale = crud_transaction.process_sale(db, student_ref=str(student.id), items=items, seller_id=seller.id)

        assert sale.total_amount == Decimal("26.05")
        assert sale.total_amount == sum(item.price * item.quantity for item in sale.items)

    def test_resolves_student_by_roll_number(self, db, seller, make_student, make_product):
        student = make_student(balance="20.00", roll_number="HS-042")
        product = make_product(price="5.00")

        sale = crud_transaction.process_sale(db, student_ref="HS-042", items=[line(product, 1)], seller_id=seller.id)

        assert sale.student_id == student.id

    def test_exact_balance_is_enough(self, db, seller, make_student, make_product):
        student = make_student(balance="10.00")
        product = make_product(price="5.00", stock=2)

        crud_transaction.process_sale(db, student_ref=str(student.id), items=[line(product, 2)], seller_id=seller.id)

        db.refresh(student)
        db.refresh(product)
        assert student.balance == Decimal("0.00")
        assert product.stock == 0

    def test_charges_request_price(self, db, seller, make_student, make_product):
        student = make_student(balance="50.00")
        product = make_product(price="10.00")

        sale = crud_transaction.process_sale(
            db, student_ref=str(student.id), items=[line(product, 1, price="8.00")], seller_id=seller.id
        )

        assert sale.total_amount == Decimal("8.00")

    def test_ledger_still_reconstructs_stock(self, db, seller, make_student, make_product):
        student = make_student(balance="100.00")
        product = make_product(price="1.00", stock=15)

        crud_transaction.process_sale(db, student_ref=str(student.id), items=[line(product, 4)], seller_id=seller.id)
        crud_transaction.process_sale(db, student_ref=str(student.id), items=[line(product, 6)], seller_id=seller.id)

        db.refresh(product)
        assert product.stock == 5
        assert crud_inventory_log.reconstruct_stock(db, product.id) == 5


class TestRejectedSale:
    def assert_nothing_written(self, db, student, product, balance, stock):
        db.refresh(student)
        db.refresh(product)
        assert student.balance == Decimal(balance)
        assert product.stock == stock
        assert count_rows(db, Transaction) == 0
        assert db.execute(
            select(func.count(InventoryLog.id)).where(InventoryLog.action == "sale")
        ).scalar_one() == 0

    def test_insufficient_balance(self, db, seller, make_student, make_product):
        """Balance 50.00 against a 60.00 cart."""
        student = make_student(balance="50.00")
        product = make_product(price="30.00", stock=10)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            crud_transaction.process_sale(db, student_ref=str(student.id), items=[line(product, 2)], seller_id=seller.id)

        assert exc_info.value.required == Decimal("60.00")
        assert exc_info.value.status_code == 400
        self.assert_nothing_written(db, student, product, "50.00", 10)

    def test_insufficient_stock(self, db, seller, make_student, make_product):
        student = make_student(balance="100.00")
        product = make_product(price="1.00", stock=3)

        with pytest.raises(InsufficientStockError) as exc_info:
            crud_transaction.process_sale(db, student_ref=str(student.id), items=[line(product, 5)], seller_id=seller.id)

        assert exc_info.value.available == 3
        assert exc_info.value.requested == 5
        assert str(exc_info.value) == f"Insufficient stock for {product.name}"
        self.assert_nothing_written(db, student, product, "100.00", 3)

    def test_repeated_lines_checked_against_total_quantity(self, db, seller, make_student, make_product):
        student = make_student(balance="100.00")
        product = make_product(price="1.00", stock=4)

        with pytest.raises(InsufficientStockError) as exc_info:
            crud_transaction.process_sale(
                db, student_ref=str(student.id), items=[line(product, 3), line(product, 2)], seller_id=seller.id
            )

        assert exc_info.value.requested == 5
        self.assert_nothing_written(db, student, product, "100.00", 4)

    def test_later_line_failure_leaves_earlier_products_untouched(self, db, seller, make_student, make_product):
        student = make_student(balance="100.00")
        plenty = make_product(price="1.00", stock=10)
        scarce = make_product(price="1.00", stock=1)

        with pytest.raises(InsufficientStockError):
            crud_transaction.process_sale(
                db, student_ref=str(student.id), items=[line(plenty, 2), line(scarce, 2)], seller_id=seller.id
            )

        db.refresh(plenty)
        assert plenty.stock == 10
        self.assert_nothing_written(db, student, scarce, "100.00", 1)

    @pytest.mark.parametrize("reference", ["999", "NO-SUCH-ROLL"])
    def test_unknown_student(self, db, seller, make_product, reference):
        product = make_product()

        with pytest.raises(StudentNotFoundError):
            crud_transaction.process_sale(db, student_ref=reference, items=[line(product, 1)], seller_id=seller.id)

        assert count_rows(db, Transaction) == 0

    def test_unknown_product(self, db, seller, make_student):
        student = make_student()
        ghost = SaleItem(product_id=424242, quantity=1, price=Decimal("1.00"))

        with pytest.raises(ProductNotFoundError) as exc_info:
            crud_transaction.process_sale(db, student_ref=str(student.id), items=[ghost], seller_id=seller.id)

        assert str(exc_info.value) == "Product 424242 not found"

    def test_empty_cart(self, db, seller, make_student):
        student = make_student()

        with pytest.raises(ValidationError):
            crud_transaction.process_sale(db, student_ref=str(student.id), items=[], seller_id=seller.id)

    def test_inactive_student(self, db, seller, make_student, make_product):
        student = make_student(status="inactive")
        product = make_product()

        with pytest.raises(ValidationError):
            crud_transaction.process_sale(db, student_ref=str(student.id), items=[line(product, 1)], seller_id=seller.id)

        self.assert_nothing_written(db, student, product, "100.00", 20)

    def test_inactive_product(self, db, seller, make_student, make_product):
        student = make_student()
        product = make_product(is_active=False)

        with pytest.raises(ValidationError):
            crud_transaction.process_sale(db, student_ref=str(student.id), items=[line(product, 1)], seller_id=seller.id)

    def test_enforced_catalog_price(self, db, seller, make_student, make_product, monkeypatch):
        monkeypatch.setattr(transaction_module.settings, "ENFORCE_CATALOG_PRICE", True)
        student = make_student()
        product = make_product(price="10.00")

        with pytest.raises(ValidationError):
            crud_transaction.process_sale(
                db, student_ref=str(student.id), items=[line(product, 1, price="1.00")], seller_id=seller.id
            )

        self.assert_nothing_written(db, student, product, "100.00", 20)

    def test_database_failure_rolls_back_every_step(self, db, seller, make_student, make_product, monkeypatch):
        """A failure on the second stock movement undoes the first one too."""
        student = make_student(balance="100.00")
        first = make_product(price="1.00", stock=10)
        second = make_product(price="1.00", stock=10)
        real_record_movement = crud_inventory_log.record_movement
        calls = []

        def failing_record_movement(db, **kwargs):
            calls.append(kwargs["product"].id)
            if len(calls) == 2:
                raise OperationalError("UPDATE products", {}, Exception("disk I/O error"))
            return real_record_movement(db, **kwargs)

        monkeypatch.setattr(crud_inventory_log, "record_movement", failing_record_movement)

        with pytest.raises(PersistenceError):
            crud_transaction.process_sale(
                db, student_ref=str(student.id), items=[line(first, 1), line(second, 1)], seller_id=seller.id
            )

        assert calls == [first.id, second.id]
        db.refresh(first)
        assert first.stock == 10
        self.assert_nothing_written(db, student, second, "100.00", 10)


class TestOrderTotal:
    def test_sums_lines(self):
        items = [
            SaleItem(product_id=1, quantity=3, price=Decimal("0.33")),
            SaleItem(product_id=2, quantity=2, price=Decimal("12.5")),
        ]
        assert order_total(items) == Decimal("25.99")

    def test_sub_cent_unit_price_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            SaleItem(product_id=1, quantity=3, price=Decimal("0.333"))

    def test_empty(self):
        assert order_total([]) == Decimal("0.00")
