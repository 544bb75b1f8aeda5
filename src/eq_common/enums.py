"""Global enums for orders and positions."""

from enum import Enum


class OrderSide(str, Enum):
    LEND = "lend"
    BORROW = "borrow"

    @property
    def opposite(self) -> "OrderSide":
        return OrderSide.BORROW if self is OrderSide.LEND else OrderSide.LEND


class OrderStatus(str, Enum):
    """pending -> matched | pending -> cancelled. Never back to pending."""
    PENDING = "pending"
    MATCHED = "matched"
    CANCELLED = "cancelled"


class PositionRole(str, Enum):
    LENDING = "lending"
    BORROWING = "borrowing"


class PositionStatus(str, Enum):
    """active -> completed | active -> liquidated. Never back to active."""
    ACTIVE = "active"
    COMPLETED = "completed"
    LIQUIDATED = "liquidated"
