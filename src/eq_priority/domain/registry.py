"""Priority / vesting status collaborator.

An address is priority-eligible while it holds locked vesting collateral.
The matching core only asks is_priority_eligible(address).
"""
import threading
from typing import Protocol


class PriorityStatusProvider(Protocol):
    async def is_priority_eligible(self, address: str) -> bool: ...


class InMemoryPriorityRegistry:
    def __init__(self, addresses: set[str] | None = None) -> None:
        self._addresses: set[str] = {a.lower() for a in addresses or set()}
        self._lock = threading.Lock()

    def grant(self, address: str) -> None:
        with self._lock:
            self._addresses.add(address.lower())

    def revoke(self, address: str) -> None:
        with self._lock:
            self._addresses.discard(address.lower())

    async def is_priority_eligible(self, address: str) -> bool:
        return bool(address) and address.lower() in self._addresses
