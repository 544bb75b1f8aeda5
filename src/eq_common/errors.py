"""Unified error codes and custom exceptions.

Error code ranges:
  4xxx: Order
  5xxx: Position
  6xxx: Attestation
  7xxx: Price oracle
  9xxx: System

"No match" is a normal outcome and has no exception.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 4xxx: Order ---

class InvalidOrderError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid order: {detail}", 422)


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class OrderNotPendingError(AppError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(4006, f"Order {order_id} in status {status} is not pending", 409)


# --- 5xxx: Position ---

class PositionNotFoundError(AppError):
    def __init__(self, position_id: str) -> None:
        super().__init__(5004, f"Position not found: {position_id}", 404)


class PositionNotActiveError(AppError):
    def __init__(self, position_id: str, status: str) -> None:
        super().__init__(5006, f"Position {position_id} in status {status} is not active", 409)


class PositionNotLiquidatableError(AppError):
    def __init__(self, position_id: str, detail: str) -> None:
        super().__init__(5007, f"Position {position_id} cannot be liquidated: {detail}", 422)


# --- 6xxx: Attestation ---

class EnclaveUnavailableError(AppError):
    """Attestation authority not configured or not reachable. Safe to retry later."""

    def __init__(self, detail: str = "no attestor configured") -> None:
        super().__init__(6001, f"Enclave unavailable: {detail}", 503)


class SignatureInvalidError(AppError):
    def __init__(self, detail: str = "signature verification failed") -> None:
        super().__init__(6002, f"Signature invalid: {detail}", 422)


# --- 7xxx: Price oracle ---

class StalePriceError(AppError):
    def __init__(self, asset: str, age_seconds: float, max_age_seconds: float) -> None:
        super().__init__(
            7001,
            f"Stale price for {asset}: age {age_seconds:.1f}s exceeds {max_age_seconds:.1f}s",
            503,
        )


class PriceUnavailableError(AppError):
    def __init__(self, asset: str) -> None:
        super().__init__(7002, f"No price available for {asset}", 503)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
