# Overview: Pytest coverage for stock receipts (single and bulk) and the stock log.

"""
Stock Receipt Tests

Covers:
- Unit conversion on receipt (2 packs -> 6 pieces)
- Tier price recomputation on receipt
- StockLog rows (pieces, per-piece cost, total cost, type, notes)
- Validation failures leave product and log untouched
- Bulk receipts are all-or-nothing
- Products outside the resolved store are not found
"""

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from retailpos.extensions import db
from retailpos.models import Product, StockLog
from retailpos.services import stock_service
from retailpos.services.stock_service import (
    BulkReceiptError,
    parse_date_range,
    parse_receipt_line,
)
from retailpos.validation import NotFoundError, ValidationError


def _receive(store, user, product, **overrides):
    kwargs = dict(
        store_id=store.id,
        user_id=user.id,
        product_id=product.id,
        quantity=2,
        unit_type="pack",
        buying_price=100,
        selling_price=150,
    )
    kwargs.update(overrides)
    return stock_service.receive_stock(**kwargs)


# =============================================================================
# SINGLE RECEIPT
# =============================================================================

class TestReceiveStock:
    """receive_stock converts units, reprices and logs in one transaction."""

    def test_two_packs_adds_six_pieces(self, db_session, store_a, admin_a, product_a):
        result = _receive(store_a, admin_a, product_a)

        assert result["message"] == "Stock received successfully"
        assert result["product"]["id"] == product_a.id
        assert result["product"]["new_quantity"] == 16

        product = db_session.get(Product, product_a.id)
        assert product.quantity == 16

    def test_prices_recomputed_from_entered_unit(self, db_session, store_a, admin_a, product_a):
        result = _receive(store_a, admin_a, product_a)

        prices = result["product"]["prices"]
        assert prices["pack_buying_price"] == 100.0
        assert prices["pack_selling_price"] == 150.0
        assert prices["piece_buying_price"] == 33.33
        assert prices["piece_selling_price"] == 50.0
        assert prices["dozen_buying_price"] == 400.0
        assert prices["dozen_selling_price"] == 600.0

    def test_stock_log_written(self, db_session, store_a, admin_a, product_a):
        _receive(store_a, admin_a, product_a)

        logs = db_session.query(StockLog).all()
        assert len(logs) == 1
        log = logs[0]
        assert log.product_id == product_a.id
        assert log.store_id == store_a.id
        assert log.user_id == admin_a.id
        assert log.quantity_added == 6
        assert log.entered_quantity == Decimal("2")
        assert log.unit_type == "pack"
        assert log.unit_cost == Decimal("33.33")
        assert log.total_cost == Decimal("200.00")
        assert log.type == "manual_receive"
        assert log.notes == "Received 2 pack(s)"
        assert log.date is not None

    def test_custom_notes_kept(self, db_session, store_a, admin_a, product_a):
        _receive(store_a, admin_a, product_a, notes="Delivery #42")

        log = db_session.query(StockLog).one()
        assert log.notes == "Delivery #42"

    def test_dozen_receipt(self, db_session, store_a, admin_a, product_a2):
        result = _receive(store_a, admin_a, product_a2, quantity=1, unit_type="dozen",
                          buying_price=120, selling_price=180)

        assert result["product"]["new_quantity"] == 12
        log = db_session.query(StockLog).one()
        assert log.quantity_added == 12
        assert log.unit_cost == Decimal("10.00")
        assert log.total_cost == Decimal("120.00")

    def test_fractional_pack_rejected(self, db_session, store_a, admin_a, product_a):
        """1.5 packs is 4.5 pieces, which cannot be stocked."""
        with pytest.raises(ValidationError) as exc:
            _receive(store_a, admin_a, product_a, quantity=1.5)
        assert "whole number of pieces" in str(exc.value)

    def test_fractional_dozen_allowed_when_whole_pieces(self, db_session, store_a, admin_a, product_a):
        result = _receive(store_a, admin_a, product_a, quantity=0.5, unit_type="dozen")
        assert result["product"]["new_quantity"] == 16

    @pytest.mark.parametrize("field", [
        "product_id", "quantity", "unit_type", "buying_price", "selling_price",
    ])
    def test_missing_field_changes_nothing(self, db_session, store_a, admin_a, product_a, field):
        with pytest.raises(ValidationError) as exc:
            _receive(store_a, admin_a, product_a, **{field: None})
        assert field in str(exc.value)

        product = db_session.get(Product, product_a.id)
        assert product.quantity == 10
        assert product.pack_buying_price == Decimal("90.00")
        assert db_session.query(StockLog).count() == 0

    @pytest.mark.parametrize("quantity", [0, -2, "abc"])
    def test_invalid_quantity(self, db_session, store_a, admin_a, product_a, quantity):
        with pytest.raises(ValidationError):
            _receive(store_a, admin_a, product_a, quantity=quantity)
        assert db_session.query(StockLog).count() == 0

    def test_negative_price_rejected(self, db_session, store_a, admin_a, product_a):
        with pytest.raises(ValidationError):
            _receive(store_a, admin_a, product_a, buying_price=-5)

    def test_unknown_unit_rejected(self, db_session, store_a, admin_a, product_a):
        with pytest.raises(ValidationError):
            _receive(store_a, admin_a, product_a, unit_type="crate")
        assert db_session.get(Product, product_a.id).quantity == 10

    def test_unknown_product_not_found(self, db_session, store_a, admin_a, product_a):
        with pytest.raises(NotFoundError):
            _receive(store_a, admin_a, product_a, product_id=999999)
        assert db_session.query(StockLog).count() == 0

    def test_product_in_other_store_not_found(self, db_session, store_a, admin_a, product_b):
        with pytest.raises(NotFoundError):
            _receive(store_a, admin_a, product_b)

        assert db_session.get(Product, product_b.id).quantity == 4
        assert db_session.query(StockLog).count() == 0

    def test_fractional_product_id_rejected(self, db_session, store_a, admin_a, product_a):
        with pytest.raises(ValidationError) as exc:
            _receive(store_a, admin_a, product_a, product_id=product_a.id + 0.9)
        assert "product_id must be an integer" in str(exc.value)

        assert db_session.get(Product, product_a.id).quantity == 10
        assert db_session.query(StockLog).count() == 0

    def test_total_cost_over_column_limit_rejected(self, db_session, store_a, admin_a, product_a):
        # 120 dozen at 99999999.99 is about 1.2e10, past Numeric(12, 2)
        with pytest.raises(ValidationError) as exc:
            _receive(store_a, admin_a, product_a, quantity=120, unit_type="dozen",
                     buying_price="99999999.99")
        assert "total_cost cannot exceed" in str(exc.value)

        assert db_session.get(Product, product_a.id).quantity == 10
        assert db_session.query(StockLog).count() == 0

    def test_derived_price_over_limit_rolls_back(self, db_session, store_a, admin_a, product_a):
        with pytest.raises(ValidationError):
            _receive(store_a, admin_a, product_a, quantity=1, unit_type="piece",
                     buying_price="99999999.99", selling_price=1)

        product = db_session.get(Product, product_a.id)
        assert product.quantity == 10
        assert product.piece_buying_price == Decimal("30.00")
        assert db_session.query(StockLog).count() == 0

    def test_missing_store_context(self, db_session, admin_a, product_a):
        with pytest.raises(ValidationError) as exc:
            stock_service.receive_stock(
                store_id=None,
                user_id=admin_a.id,
                product_id=product_a.id,
                quantity=1,
                unit_type="piece",
                buying_price=10,
                selling_price=15,
            )
        assert "Store context missing" in str(exc.value)


class TestParseReceiptLine:
    def test_selling_price_optional_when_not_required(self, app):
        line = parse_receipt_line(
            {"product_id": "3", "quantity": "2", "unit_type": "pack", "buying_price": "90"},
            selling_required=False,
        )
        assert line.product_id == 3
        assert line.pieces == 6
        assert line.selling_price is None

    def test_blank_notes_dropped(self, app):
        line = parse_receipt_line({
            "product_id": 1, "quantity": 1, "unit_type": "piece",
            "buying_price": 1, "selling_price": 2, "notes": "   ",
        })
        assert line.notes is None

    def test_boolean_product_id_rejected(self, app):
        with pytest.raises(ValidationError):
            parse_receipt_line({
                "product_id": True, "quantity": 1, "unit_type": "piece",
                "buying_price": 1, "selling_price": 2,
            })

    @pytest.mark.parametrize("product_id", [1.9, "1.5", "1e3", "abc", [1]])
    def test_non_integer_product_id_rejected(self, app, product_id):
        with pytest.raises(ValidationError):
            parse_receipt_line({
                "product_id": product_id, "quantity": 1, "unit_type": "piece",
                "buying_price": 1, "selling_price": 2,
            })

    @pytest.mark.parametrize("product_id", [7, 7.0, "7", " 7 "])
    def test_whole_product_id_accepted(self, app, product_id):
        line = parse_receipt_line({
            "product_id": product_id, "quantity": 1, "unit_type": "piece",
            "buying_price": 1, "selling_price": 2,
        })
        assert line.product_id == 7


# =============================================================================
# CONCURRENT WRITES
# =============================================================================

class TestConcurrentReceipts:
    """Product.version_id turns a lost update into StaleDataError."""

    def test_stale_write_is_rejected(self, db_session, store_a, admin_a, product_a):
        other = Session(db.engine)
        try:
            stale = other.get(Product, product_a.id)
            stale_version = stale.version_id
            assert stale.quantity == 10

            _receive(store_a, admin_a, product_a)

            stale.quantity += 100
            with pytest.raises(StaleDataError):
                other.commit()
            other.rollback()
        finally:
            other.close()

        db_session.expire_all()
        product = db_session.get(Product, product_a.id)
        assert product.quantity == 16
        assert product.version_id == stale_version + 1


# =============================================================================
# BULK RECEIPT
# =============================================================================

class TestReceiveStockBulk:
    """Bulk receipts commit every item or none."""

    def _item(self, product, **overrides):
        item = {
            "product_id": product.id,
            "quantity": 1,
            "unit_type": "piece",
            "buying_price": 10,
            "selling_price": 15,
        }
        item.update(overrides)
        return item

    def test_all_items_applied(self, db_session, store_a, admin_a, product_a, product_a2):
        result = stock_service.receive_stock_bulk(
            store_id=store_a.id,
            user_id=admin_a.id,
            items=[
                self._item(product_a, quantity=2, unit_type="pack", buying_price=100, selling_price=150),
                self._item(product_a2, quantity=5),
            ],
        )

        assert result["count"] == 2
        assert [i["new_quantity"] for i in result["items"]] == [16, 5]

        logs = db_session.query(StockLog).order_by(StockLog.id).all()
        assert len(logs) == 2
        assert all(log.type == "bulk_receive" for log in logs)
        assert logs[0].notes == "Bulk Receive: 2 pack(s)"
        assert logs[1].total_cost == Decimal("50.00")

    def test_failing_item_rolls_back_whole_batch(self, db_session, store_a, admin_a, product_a, product_a2):
        with pytest.raises(BulkReceiptError) as exc:
            stock_service.receive_stock_bulk(
                store_id=store_a.id,
                user_id=admin_a.id,
                items=[
                    self._item(product_a, quantity=3),
                    {"product_id": 999999, "quantity": 1, "unit_type": "piece",
                     "buying_price": 1, "selling_price": 2},
                    self._item(product_a2, quantity=4),
                ],
            )

        assert exc.value.index == 1
        assert "Item 2 (product ID 999999)" in str(exc.value)

        assert db_session.get(Product, product_a.id).quantity == 10
        assert db_session.get(Product, product_a2.id).quantity == 0
        assert db_session.query(StockLog).count() == 0

    def test_invalid_item_rolls_back(self, db_session, store_a, admin_a, product_a, product_a2):
        with pytest.raises(BulkReceiptError) as exc:
            stock_service.receive_stock_bulk(
                store_id=store_a.id,
                user_id=admin_a.id,
                items=[
                    self._item(product_a2, quantity=4),
                    self._item(product_a, unit_type="crate"),
                ],
            )

        assert "Item 2" in str(exc.value)
        assert db_session.get(Product, product_a2.id).quantity == 0
        assert db_session.query(StockLog).count() == 0

    def test_foreign_store_item_rolls_back(self, db_session, store_a, admin_a, product_a, product_b):
        with pytest.raises(BulkReceiptError):
            stock_service.receive_stock_bulk(
                store_id=store_a.id,
                user_id=admin_a.id,
                items=[self._item(product_a), self._item(product_b)],
            )
        assert db_session.get(Product, product_a.id).quantity == 10

    @pytest.mark.parametrize("items", [None, [], "not-a-list"])
    def test_no_items(self, db_session, store_a, admin_a, items):
        with pytest.raises(ValidationError) as exc:
            stock_service.receive_stock_bulk(store_id=store_a.id, user_id=admin_a.id, items=items)
        assert "No items provided" in str(exc.value)


# =============================================================================
# STOCK LOG
# =============================================================================

class TestStockLogs:
    def test_newest_first_and_store_scoped(
        self, db_session, store_a, store_b, admin_a, admin_b, product_a, product_b
    ):
        _receive(store_a, admin_a, product_a, quantity=1)
        _receive(store_a, admin_a, product_a, quantity=2)
        _receive(store_b, admin_b, product_b, quantity=1)

        logs, total = stock_service.list_stock_logs(store_id=store_a.id)

        assert total == 2
        assert [log.quantity_added for log in logs] == [6, 3]
        assert all(log.store_id == store_a.id for log in logs)

    def test_all_stores_when_store_is_none(
        self, db_session, store_a, store_b, admin_a, admin_b, product_a, product_b
    ):
        _receive(store_a, admin_a, product_a)
        _receive(store_b, admin_b, product_b)

        _logs, total = stock_service.list_stock_logs(store_id=None)
        assert total == 2

    def test_filter_by_product(self, db_session, store_a, admin_a, product_a, product_a2):
        _receive(store_a, admin_a, product_a)
        _receive(store_a, admin_a, product_a2)

        logs, total = stock_service.list_stock_logs(store_id=store_a.id, product_id=product_a2.id)
        assert total == 1
        assert logs[0].product_id == product_a2.id

    def test_future_range_is_empty(self, db_session, store_a, admin_a, product_a):
        _receive(store_a, admin_a, product_a)

        logs, total = stock_service.list_stock_logs(store_id=store_a.id, start="2999-01-01")
        assert total == 0
        assert logs == []

    def test_to_dict(self, db_session, store_a, admin_a, product_a):
        _receive(store_a, admin_a, product_a)

        data = db_session.query(StockLog).one().to_dict()
        assert data["quantity_added"] == 6
        assert data["total_cost"] == 200.0
        assert data["product"] == {"name": "Soda Can", "sku": "PROD-A-001"}
        assert data["date"].endswith("Z")


class TestParseDateRange:
    def test_date_only_end_covers_whole_day(self, app):
        start, end = parse_date_range("2026-03-01", "2026-03-01")
        assert start.hour == 0
        assert (end.hour, end.minute, end.second) == (23, 59, 59)

    def test_datetime_end_kept(self, app):
        _start, end = parse_date_range(None, "2026-03-01T10:30:00Z")
        assert (end.hour, end.minute) == (10, 30)

    @pytest.mark.parametrize("start,end,message", [
        ("yesterday", None, "Invalid start_date format"),
        (None, "03/01/2026", "Invalid end_date format"),
        ("2026-03-02", "2026-03-01", "start_date must be on or before end_date"),
    ])
    def test_invalid(self, app, start, end, message):
        with pytest.raises(ValidationError) as exc:
            parse_date_range(start, end)
        assert message in str(exc.value)
