"""Canonical attestation message codec.

Layout (fixed; verifiers recompute it independently):

    lend_order_id bytes || borrow_order_id bytes || score u64 LE || timestamp_ms u64 LE

Order ID bytes: a 0x-prefixed, even-length hex ID (ledger object ID form)
is hex-decoded; any other ID is its UTF-8 encoding. IDs are variable
length, so the two trailing u64 fields are always the last 16 bytes.
"""
import re
import struct

_U64 = struct.Struct("<Q")
_TAIL = struct.Struct("<QQ")
_U64_MAX = (1 << 64) - 1
_HEX_ID = re.compile(r"^0x(?:[0-9a-fA-F]{2})+$")


def encode_order_id(order_id: str) -> bytes:
    if _HEX_ID.match(order_id):
        return bytes.fromhex(order_id[2:])
    return order_id.encode("utf-8")


def encode_u64(value: int) -> bytes:
    if not (0 <= value <= _U64_MAX):
        raise ValueError(f"value out of u64 range: {value}")
    return _U64.pack(value)


def build_message(lend_order_id: str, borrow_order_id: str, score: int, timestamp_ms: int) -> bytes:
    return (
        encode_order_id(lend_order_id)
        + encode_order_id(borrow_order_id)
        + encode_u64(score)
        + encode_u64(timestamp_ms)
    )


def decode_tail(message: bytes) -> tuple[int, int]:
    """(score, timestamp_ms) from the trailing 16 bytes."""
    if len(message) < _TAIL.size:
        raise ValueError(f"message too short: {len(message)} bytes")
    score, timestamp_ms = _TAIL.unpack(message[-_TAIL.size:])
    return score, timestamp_ms


def message_matches(
    message: bytes, lend_order_id: str, borrow_order_id: str, score: int | None = None
) -> bool:
    """True when `message` attests exactly this order pair (and score, if given)."""
    prefix = encode_order_id(lend_order_id) + encode_order_id(borrow_order_id)
    if len(message) != len(prefix) + _TAIL.size or not message.startswith(prefix):
        return False
    if score is None:
        return True
    return decode_tail(message)[0] == score
