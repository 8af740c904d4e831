# =========================================================
# LEDGER OPERATIONS
#
# - Cart arithmetic (subtotal, tax, grand total, stock ceiling)
# - Sale commit: sale row -> line items -> stock -> customer credit
# - Credit payment: customer balance -> payment transaction
#
# Every step is its own data-service call. A failing step
# aborts the operation and leaves earlier steps committed.
# =========================================================

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from pos_console.core.config import settings
from pos_console.services.data_service import DataService, DataServiceError

logger = logging.getLogger("pos_console")

PAYMENT_METHODS = ("cash", "card", "credit")

CENT = Decimal("0.01")


def round2(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class LedgerError(Exception):
    pass


class LedgerValidationError(LedgerError):
    """Input rejected before any data-service call."""


class CartError(LedgerValidationError):
    pass


class LedgerStepError(LedgerError):
    """A data-service call failed part-way through a ledger operation."""

    def __init__(self, step: str, completed_steps: list[str], sale_id: int | None = None):
        super().__init__(f"Ledger step '{step}' failed after {completed_steps or 'no steps'}")
        self.step = step
        self.completed_steps = completed_steps
        self.sale_id = sale_id


# =========================================================
# CART
# =========================================================
@dataclass
class CartLine:
    product_id: int
    name: str
    unit_price: Decimal
    stock_quantity: int
    quantity: int = 1

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


class Cart:
    def __init__(self, tax_rate=None):
        self.tax_rate = Decimal(str(settings.TAX_RATE if tax_rate is None else tax_rate))
        self._lines: dict[int, CartLine] = {}

    def __len__(self):
        return len(self._lines)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def get(self, product_id: int) -> CartLine | None:
        return self._lines.get(product_id)

    def add(self, product: dict) -> CartLine:
        line = self._lines.get(product["id"])
        stock = product["stock_quantity"]

        if line is None:
            if stock <= 0:
                raise CartError("Product is out of stock")

            line = CartLine(
                product_id=product["id"],
                name=product["name"],
                unit_price=Decimal(str(product["selling_price"])),
                stock_quantity=stock,
            )
            self._lines[line.product_id] = line
            return line

        if line.quantity >= stock:
            raise CartError("Insufficient stock")

        line.quantity += 1
        line.stock_quantity = stock
        return line

    def update_quantity(self, product: dict, quantity: int) -> CartLine | None:
        line = self._lines.get(product["id"])
        if line is None:
            raise CartError("Product is not in the cart")

        if quantity <= 0:
            self.remove(line.product_id)
            return None

        if quantity > product["stock_quantity"]:
            raise CartError("Insufficient stock")

        line.quantity = quantity
        line.stock_quantity = product["stock_quantity"]
        return line

    def remove(self, product_id: int) -> bool:
        return self._lines.pop(product_id, None) is not None

    def clear(self):
        self._lines.clear()

    @property
    def subtotal(self) -> Decimal:
        return sum((line.total for line in self._lines.values()), Decimal("0"))

    @property
    def tax(self) -> Decimal:
        return round2(self.subtotal * self.tax_rate)

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax


# =========================================================
# SALE COMMIT
# =========================================================
@dataclass
class SaleReceipt:
    sale: dict
    items: list[dict]
    credit_transaction: dict | None = None
    subtotal: Decimal = field(default_factory=lambda: Decimal("0"))


def commit_sale(
    data: DataService,
    cart: Cart,
    payment_method: str,
    customer: dict | None = None,
    user_id: int | None = None,
    store_id: int | None = None,
) -> SaleReceipt:
    """Record the cart as a completed sale.

    Steps run in order and each commits independently:

    1. insert the sale row
    2. batch-insert one line item per cart line
    3. decrement each product's stock from the cart's snapshot
    4. for credit sales, raise the customer's balance and append a
       ``credit`` transaction

    On success the cart is cleared. On failure ``LedgerStepError`` names the
    failing step; nothing already written is undone.
    """
    if not len(cart):
        raise LedgerValidationError("Cart is empty")

    if payment_method not in PAYMENT_METHODS:
        raise LedgerValidationError("Invalid payment method")

    if payment_method == "credit" and customer is None:
        raise LedgerValidationError("Select a customer for credit payment")

    lines = cart.lines
    subtotal = cart.subtotal
    tax = cart.tax
    total = subtotal + tax

    completed: list[str] = []
    sale_id = None
    step = "insert_sale"

    try:
        sale = data.insert(
            "sales",
            {
                "customer_id": customer["id"] if customer else None,
                "user_id": user_id,
                "store_id": store_id,
                "total_amount": total,
                "tax_amount": tax,
                "discount_amount": Decimal("0.00"),
                "payment_method": payment_method,
                "status": "completed",
            },
        )
        sale_id = sale["id"]
        completed.append(step)

        step = "insert_sale_items"
        items = data.insert_many(
            "sale_items",
            [
                {
                    "sale_id": sale_id,
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "total_price": line.total,
                }
                for line in lines
            ],
        )
        completed.append(step)

        for line in lines:
            step = f"decrement_stock:{line.product_id}"
            updated = data.update(
                "products",
                line.product_id,
                {"stock_quantity": line.stock_quantity - line.quantity},
            )
            if not updated:
                raise DataServiceError("update", "products", f"product {line.product_id} not found")
            completed.append(step)

        credit_transaction = None

        if payment_method == "credit":
            new_balance = Decimal(str(customer["current_credit"])) + total

            step = "update_customer_credit"
            updated = data.update("customers", customer["id"], {"current_credit": new_balance})
            if not updated:
                raise DataServiceError("update", "customers", f"customer {customer['id']} not found")
            completed.append(step)

            step = "insert_credit_transaction"
            credit_transaction = data.insert(
                "credit_transactions",
                {
                    "customer_id": customer["id"],
                    "sale_id": sale_id,
                    "store_id": store_id,
                    "transaction_type": "credit",
                    "amount": total,
                    "balance_after": new_balance,
                    "description": f"Sale #{sale_id}",
                },
            )
            completed.append(step)

    except DataServiceError as exc:
        logger.error(
            f"Sale commit failed at {step} (sale_id={sale_id}, completed={completed}): {exc}"
        )
        raise LedgerStepError(step, completed, sale_id) from exc

    cart.clear()

    logger.info(
        f"Sale #{sale_id} completed: {len(items)} lines, total {total}, method {payment_method}"
    )

    return SaleReceipt(
        sale=sale,
        items=items,
        credit_transaction=credit_transaction,
        subtotal=subtotal,
    )


# =========================================================
# CREDIT PAYMENT
# =========================================================
def parse_amount(raw) -> Decimal:
    if raw is None or raw == "":
        raise LedgerValidationError("Complete all fields")

    try:
        amount = Decimal(str(raw))

        # Balances are stored in whole cents
        if not amount.is_finite() or amount != round2(amount):
            raise LedgerValidationError("Invalid amount")
    except InvalidOperation:
        raise LedgerValidationError("Invalid amount")

    return amount


def record_credit_payment(
    data: DataService,
    customer: dict | None,
    amount,
    store_id: int | None = None,
) -> dict:
    """Apply a payment against a customer's outstanding credit.

    Accepted only when ``0 < amount <= current_credit``. Returns the new
    ``payment`` transaction row, whose ``balance_after`` is the new balance.
    """
    if customer is None:
        raise LedgerValidationError("Complete all fields")

    amount = parse_amount(amount)
    current_credit = Decimal(str(customer["current_credit"]))

    if amount <= 0 or amount > current_credit:
        raise LedgerValidationError("Invalid amount")

    new_balance = current_credit - amount

    completed: list[str] = []
    step = "update_customer_credit"

    try:
        updated = data.update("customers", customer["id"], {"current_credit": new_balance})
        if not updated:
            raise DataServiceError("update", "customers", f"customer {customer['id']} not found")
        completed.append(step)

        step = "insert_credit_transaction"
        transaction = data.insert(
            "credit_transactions",
            {
                "customer_id": customer["id"],
                "store_id": store_id,
                "transaction_type": "payment",
                "amount": -amount,
                "balance_after": new_balance,
                "description": "Credit payment",
            },
        )
    except DataServiceError as exc:
        logger.error(
            f"Credit payment for customer {customer['id']} failed at {step} "
            f"(completed={completed}): {exc}"
        )
        raise LedgerStepError(step, completed) from exc

    logger.info(f"Credit payment of {amount} recorded for customer {customer['id']}")

    return transaction
