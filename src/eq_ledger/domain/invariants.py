"""Ledger-wide invariant check (INV-L)."""
import logging

from src.eq_common.enums import OrderStatus, PositionRole
from src.eq_ledger.engine.ledger import Ledger

logger = logging.getLogger(__name__)


def verify_ledger_invariants(ledger: Ledger) -> list[str]:
    """Check every committed match. Returns list of violation strings.

    INV-L1: pending orders carry no fairness score and no positions
    INV-L2: a matched order has exactly one position, linked to a counterpart
    INV-L3: position.amount == min(lend.amount, borrow.amount) on both sides
    """
    violations: list[str] = []
    for order in ledger.orders():
        positions = ledger.positions_for_order(order.id)
        if order.status == OrderStatus.PENDING:
            if order.fairness_score is not None or positions:
                violations.append(f"INV-L1 violated: pending order {order.id} has match state")
            continue
        if order.status != OrderStatus.MATCHED:
            continue
        if len(positions) != 1:
            violations.append(
                f"INV-L2 violated: matched order {order.id} has {len(positions)} positions"
            )
            continue
        position = positions[0]
        counterpart = ledger.get_position(position.counterpart_id)
        counter_order = ledger.get_order(counterpart.order_id)
        expected = min(order.amount, counter_order.amount)
        if position.amount != expected or counterpart.amount != expected:
            violations.append(
                f"INV-L3 violated: match {order.id}/{counter_order.id} "
                f"amount={position.amount} != min={expected}"
            )
        expected_role = PositionRole.LENDING if order.is_lend else PositionRole.BORROWING
        if position.role != expected_role:
            violations.append(f"INV-L2 violated: order {order.id} has {position.role.value} position")
    for msg in violations:
        logger.error(msg)
    return violations
