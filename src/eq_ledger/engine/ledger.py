"""Ledger — in-memory store of orders and positions.

Owns every Order and Position lifecycle transition. One lock guards all
status changes, so mark_matched is a compare-and-swap across both orders.
Pending orders are indexed per (side, asset) bucket in insertion order;
that order is the first-come-first-served tie-break for matching.
"""
import logging
import threading
from collections import defaultdict
from collections.abc import Iterator
from datetime import datetime
from decimal import Decimal

from src.eq_common.datetime_utils import utc_now
from src.eq_common.enums import OrderSide, OrderStatus, PositionStatus
from src.eq_common.errors import (
    InvalidOrderError,
    OrderNotFoundError,
    OrderNotPendingError,
    PositionNotActiveError,
    PositionNotFoundError,
)
from src.eq_ledger.domain.models import MarketStats, Order, Position
from src.eq_ledger.domain.rules import commitment_for, validate_order

logger = logging.getLogger(__name__)

_BucketKey = tuple[OrderSide, str]


class PendingOrders:
    """Lazy, finite, restartable view of pending orders in one bucket.

    Each iteration snapshots the bucket, so orders inserted mid-scan are
    not visited and never reorder the ones that are. Orders that leave
    pending mid-scan are skipped.
    """

    def __init__(self, ledger: "Ledger", key: _BucketKey) -> None:
        self._ledger = ledger
        self._key = key

    def __iter__(self) -> Iterator[Order]:
        for order_id in self._ledger._snapshot_bucket(self._key):
            order = self._ledger.find_order(order_id)
            if order is not None and order.is_pending:
                yield order


class Ledger:
    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}
        self._buckets: dict[_BucketKey, list[str]] = defaultdict(list)
        self._positions: dict[str, Position] = {}
        self._positions_by_order: dict[str, list[str]] = defaultdict(list)
        self._stats = MarketStats()
        self._lock = threading.RLock()

    # --- Orders ---

    def insert(self, order: Order) -> Order:
        """Validate and append as pending. Raises InvalidOrderError."""
        validate_order(order)
        with self._lock:
            if order.id in self._orders:
                raise InvalidOrderError(f"duplicate order id {order.id}")
            order.asset = order.asset.upper()
            order.status = OrderStatus.PENDING
            order.fairness_score = None
            order.matched_at = None
            if order.created_at is None:
                order.created_at = utc_now()
            if order.hidden and not order.proof_ref:
                order.proof_ref = commitment_for(order)
            self._orders[order.id] = order
            self._buckets[(order.side, order.asset)].append(order.id)
        logger.debug("Order inserted: %s %s %s %s", order.id, order.side.value, order.amount, order.asset)
        return order

    def find_order(self, order_id: str) -> Order | None:
        return self._orders.get(order_id)

    def get_order(self, order_id: str) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def cancel(self, order_id: str) -> Order:
        """pending -> cancelled. No-op for matched/cancelled orders (idempotent)."""
        with self._lock:
            order = self.get_order(order_id)
            if not order.is_pending:
                return order
            order.status = OrderStatus.CANCELLED
            self._unindex(order)
        logger.info("Order cancelled: %s", order_id)
        return order

    def mark_matched(
        self,
        lend_id: str,
        borrow_id: str,
        fairness_score: int | None = None,
        matched_at: datetime | None = None,
    ) -> tuple[Order, Order]:
        """Both orders pending -> matched, or neither. Raises OrderNotPendingError."""
        with self._lock:
            lend = self.get_order(lend_id)
            borrow = self.get_order(borrow_id)
            if lend.side != OrderSide.LEND:
                raise InvalidOrderError(f"{lend_id} is not a lend order")
            if borrow.side != OrderSide.BORROW:
                raise InvalidOrderError(f"{borrow_id} is not a borrow order")
            for order in (lend, borrow):
                if not order.is_pending:
                    raise OrderNotPendingError(order.id, order.status.value)
            at = matched_at or utc_now()
            for order in (lend, borrow):
                order.status = OrderStatus.MATCHED
                order.matched_at = at
                order.fairness_score = fairness_score
                self._unindex(order)
        return lend, borrow

    def list_pending(self, side: OrderSide, asset: str) -> PendingOrders:
        return PendingOrders(self, (side, asset.upper()))

    def orders(self) -> list[Order]:
        with self._lock:
            return list(self._orders.values())

    def _snapshot_bucket(self, key: _BucketKey) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._buckets.get(key, ()))

    def _unindex(self, order: Order) -> None:
        bucket = self._buckets.get((order.side, order.asset))
        if bucket and order.id in bucket:
            bucket.remove(order.id)

    # --- Positions ---

    def record_positions(self, lending: Position, borrowing: Position) -> None:
        with self._lock:
            for position in (lending, borrowing):
                self._positions[position.id] = position
                self._positions_by_order[position.order_id].append(position.id)
            self._stats.total_matched += lending.amount
            self._stats.total_loans += 1
            by_asset = self._stats.matched_by_asset
            by_asset[lending.asset] = by_asset.get(lending.asset, Decimal(0)) + lending.amount

    def get_position(self, position_id: str) -> Position:
        position = self._positions.get(position_id)
        if position is None:
            raise PositionNotFoundError(position_id)
        return position

    def positions_for_order(self, order_id: str) -> list[Position]:
        with self._lock:
            return [self._positions[pid] for pid in self._positions_by_order.get(order_id, [])]

    def positions(self) -> list[Position]:
        with self._lock:
            return list(self._positions.values())

    def close_position_pair(
        self, position_id: str, status: PositionStatus, at: datetime | None = None
    ) -> tuple[Position, Position]:
        """Move a position and its counterpart out of ACTIVE together.

        Returns (requested, counterpart). Raises PositionNotActiveError.
        """
        if status == PositionStatus.ACTIVE:
            raise ValueError("positions never return to active")
        with self._lock:
            position = self.get_position(position_id)
            counterpart = self.get_position(position.counterpart_id)
            for p in (position, counterpart):
                if not p.is_active:
                    raise PositionNotActiveError(p.id, p.status.value)
            closed_at = at or utc_now()
            for p in (position, counterpart):
                p.status = status
                p.closed_at = closed_at
        logger.info("Positions %s/%s -> %s", position.id, counterpart.id, status.value)
        return position, counterpart

    @property
    def stats(self) -> MarketStats:
        return self._stats
