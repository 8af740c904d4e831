from decimal import Decimal

import pytest

from pos_console.services.data_service import DataService, DataServiceError
from pos_console.services.ledger import (
    Cart,
    LedgerStepError,
    LedgerValidationError,
    commit_sale,
    record_credit_payment,
)


class FailingTable(DataService):
    """Data service whose updates to one table always fail."""

    def __init__(self, db, table):
        super().__init__(db)
        self.failing_table = table

    def update(self, table, row_id, patch, filters=()):
        if table == self.failing_table:
            raise DataServiceError("update", table, "connection reset")
        return super().update(table, row_id, patch, filters)


def cart_with(*products_and_quantities):
    cart = Cart(tax_rate="0.16")
    for product, quantity in products_and_quantities:
        for _ in range(quantity):
            cart.add(product)
    return cart


# ---------------- SALE COMMIT ----------------

def test_cash_sale_records_sale_items_and_stock(data, store, admin_user, make_product):
    beans = make_product(selling_price="10.00", stock_quantity=5)
    cart = cart_with((beans, 3))

    receipt = commit_sale(
        data, cart, "cash", user_id=admin_user["id"], store_id=store["id"]
    )

    sale = receipt.sale
    assert sale["total_amount"] == Decimal("34.80")
    assert sale["tax_amount"] == Decimal("4.80")
    assert sale["status"] == "completed"
    assert sale["payment_method"] == "cash"
    assert sale["customer_id"] is None
    assert receipt.subtotal == Decimal("30.00")

    assert len(receipt.items) == 1
    item = receipt.items[0]
    assert item["sale_id"] == sale["id"]
    assert item["quantity"] == 3
    assert item["unit_price"] == Decimal("10.00")
    assert item["total_price"] == Decimal("30.00")

    assert data.get("products", beans["id"])["stock_quantity"] == 2
    assert receipt.credit_transaction is None
    assert data.count("credit_transactions") == 0
    assert len(cart) == 0


def test_one_item_row_per_cart_line(data, store, make_product):
    beans = make_product(name="Beans", stock_quantity=10)
    milk = make_product(name="Milk", selling_price="1.50", stock_quantity=10)

    receipt = commit_sale(data, cart_with((beans, 2), (milk, 4)), "card", store_id=store["id"])

    rows = data.query("sale_items", [("sale_id", "eq", receipt.sale["id"])], order=["id"])
    assert [(row["product_id"], row["quantity"]) for row in rows] == [
        (beans["id"], 2),
        (milk["id"], 4),
    ]
    assert data.get("products", milk["id"])["stock_quantity"] == 6


def test_credit_sale_raises_balance_by_grand_total(data, store, make_product, make_customer):
    beans = make_product(selling_price="10.00", stock_quantity=5)
    rosa = make_customer(current_credit="20.00")

    receipt = commit_sale(
        data, cart_with((beans, 3)), "credit", customer=rosa, store_id=store["id"]
    )

    assert data.get("customers", rosa["id"])["current_credit"] == Decimal("54.80")

    transactions = data.query("credit_transactions", [("customer_id", "eq", rosa["id"])])
    assert len(transactions) == 1
    transaction = transactions[0]
    assert transaction["sale_id"] == receipt.sale["id"]
    assert transaction["transaction_type"] == "credit"
    assert transaction["amount"] == Decimal("34.80")
    assert transaction["balance_after"] == Decimal("54.80")
    assert transaction["description"] == f"Sale #{receipt.sale['id']}"
    assert receipt.credit_transaction["id"] == transaction["id"]


def test_credit_sale_may_exceed_credit_limit(data, store, make_product, make_customer):
    beans = make_product(selling_price="100.00", stock_quantity=5)
    rosa = make_customer(current_credit="0.00", credit_limit="50.00")

    commit_sale(data, cart_with((beans, 1)), "credit", customer=rosa, store_id=store["id"])

    assert data.get("customers", rosa["id"])["current_credit"] == Decimal("116.00")


def test_sale_with_customer_but_cash_leaves_balance(data, store, make_product, make_customer):
    beans = make_product()
    rosa = make_customer(current_credit="20.00")

    receipt = commit_sale(data, cart_with((beans, 1)), "cash", customer=rosa, store_id=store["id"])

    assert receipt.sale["customer_id"] == rosa["id"]
    assert data.get("customers", rosa["id"])["current_credit"] == Decimal("20.00")
    assert data.count("credit_transactions") == 0


def test_empty_cart_is_rejected_before_any_write(data, store):
    with pytest.raises(LedgerValidationError, match="Cart is empty"):
        commit_sale(data, Cart(), "cash", store_id=store["id"])

    assert data.count("sales") == 0


def test_credit_sale_requires_customer(data, store, make_product):
    cart = cart_with((make_product(), 1))

    with pytest.raises(LedgerValidationError, match="customer"):
        commit_sale(data, cart, "credit", store_id=store["id"])

    assert data.count("sales") == 0
    assert len(cart) == 1


def test_unknown_payment_method_is_rejected(data, store, make_product):
    with pytest.raises(LedgerValidationError):
        commit_sale(data, cart_with((make_product(), 1)), "voucher", store_id=store["id"])


def test_stock_is_written_from_cart_snapshot(data, store, make_product):
    beans = make_product(stock_quantity=5)
    cart = cart_with((beans, 2))

    # Another till sells from the same shelf after this cart was built
    data.update("products", beans["id"], {"stock_quantity": 1})

    commit_sale(data, cart, "cash", store_id=store["id"])

    assert data.get("products", beans["id"])["stock_quantity"] == 3


def test_failed_step_keeps_earlier_writes(db_session, data, store, make_product):
    beans = make_product(stock_quantity=5)
    cart = cart_with((beans, 2))
    failing = FailingTable(db_session, "products")

    with pytest.raises(LedgerStepError) as excinfo:
        commit_sale(failing, cart, "cash", store_id=store["id"])

    error = excinfo.value
    assert error.step == f"decrement_stock:{beans['id']}"
    assert error.completed_steps == ["insert_sale", "insert_sale_items"]
    assert error.sale_id is not None

    # No compensation: sale and items stay, stock untouched, cart kept
    assert data.count("sales") == 1
    assert data.count("sale_items", [("sale_id", "eq", error.sale_id)]) == 1
    assert data.get("products", beans["id"])["stock_quantity"] == 5
    assert len(cart) == 1


def test_failed_credit_update_skips_transaction(db_session, data, store, make_product, make_customer):
    beans = make_product(stock_quantity=5)
    rosa = make_customer(current_credit="0.00")
    failing = FailingTable(db_session, "customers")

    with pytest.raises(LedgerStepError) as excinfo:
        commit_sale(failing, cart_with((beans, 1)), "credit", customer=rosa, store_id=store["id"])

    assert excinfo.value.step == "update_customer_credit"
    assert data.get("products", beans["id"])["stock_quantity"] == 4
    assert data.count("credit_transactions") == 0


def test_deleted_product_fails_stock_step(data, store, make_product):
    beans = make_product(stock_quantity=5)
    cart = cart_with((beans, 1))
    data.delete("products", beans["id"])

    with pytest.raises(LedgerStepError) as excinfo:
        commit_sale(data, cart, "cash", store_id=store["id"])

    assert excinfo.value.step.startswith("decrement_stock")


# ---------------- CREDIT PAYMENT ----------------

def test_payment_above_balance_is_rejected(data, store, make_customer):
    rosa = make_customer(current_credit="50.00")

    with pytest.raises(LedgerValidationError, match="Invalid amount"):
        record_credit_payment(data, rosa, Decimal("60.00"), store_id=store["id"])

    assert data.get("customers", rosa["id"])["current_credit"] == Decimal("50.00")
    assert data.count("credit_transactions") == 0


def test_payment_of_full_balance_clears_it(data, store, make_customer):
    rosa = make_customer(current_credit="50.00")

    transaction = record_credit_payment(data, rosa, Decimal("50.00"), store_id=store["id"])

    assert data.get("customers", rosa["id"])["current_credit"] == Decimal("0.00")
    assert transaction["transaction_type"] == "payment"
    assert transaction["amount"] == Decimal("-50.00")
    assert transaction["balance_after"] == Decimal("0.00")
    assert transaction["sale_id"] is None


def test_partial_payment(data, store, make_customer):
    rosa = make_customer(current_credit="80.25")

    transaction = record_credit_payment(data, rosa, "30.10", store_id=store["id"])

    assert transaction["balance_after"] == Decimal("50.15")
    assert data.get("customers", rosa["id"])["current_credit"] == Decimal("50.15")


@pytest.mark.parametrize(
    "amount",
    [Decimal("0"), Decimal("-5"), "abc", None, "", "NaN", "Infinity", "0.001", "49.999", Decimal("10.005")],
)
def test_invalid_payment_amounts(data, make_customer, amount):
    rosa = make_customer(current_credit="50.00")

    with pytest.raises(LedgerValidationError):
        record_credit_payment(data, rosa, amount)

    assert data.get("customers", rosa["id"])["current_credit"] == Decimal("50.00")
    assert data.count("credit_transactions") == 0


def test_payment_amount_with_trailing_zeros_is_whole_cents(data, make_customer):
    rosa = make_customer(current_credit="50.00")

    transaction = record_credit_payment(data, rosa, "20.500")

    assert transaction["balance_after"] == Decimal("29.50")
    assert data.get("customers", rosa["id"])["current_credit"] == Decimal("50.00") - Decimal("20.50")


def test_payment_requires_customer(data):
    with pytest.raises(LedgerValidationError):
        record_credit_payment(data, None, Decimal("10.00"))


def test_payment_write_failure_is_step_error(db_session, make_customer):
    rosa = make_customer(current_credit="50.00")

    with pytest.raises(LedgerStepError) as excinfo:
        record_credit_payment(FailingTable(db_session, "customers"), rosa, Decimal("10.00"))

    assert excinfo.value.step == "update_customer_credit"
    assert excinfo.value.completed_steps == []
