# pos_console/services/carts.py

from fastapi import Depends

from pos_console.core.auth import get_current_user
from pos_console.services.ledger import Cart


class CartRegistry:
    """Open carts, one per signed-in operator, kept in process memory."""

    def __init__(self):
        self._carts: dict[int, Cart] = {}

    def get(self, user_id: int) -> Cart:
        # Single dict operation, so concurrent first requests share one cart
        return self._carts.setdefault(user_id, Cart())

    def discard(self, user_id: int):
        self._carts.pop(user_id, None)

    def clear(self):
        self._carts.clear()


cart_registry = CartRegistry()


def get_cart(current_user: dict = Depends(get_current_user)) -> Cart:
    return cart_registry.get(current_user["id"])
