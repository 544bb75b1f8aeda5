"""Ed25519 verification for presented attestations."""
import logging

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from src.eq_attestation.domain.message import message_matches
from src.eq_attestation.domain.models import Attestation
from src.eq_common.errors import SignatureInvalidError

logger = logging.getLogger(__name__)

PUBLIC_KEY_SIZE = 32
SIGNATURE_SIZE = 64


def verify(message: bytes, signature: bytes, public_key: bytes) -> bool:
    """Standard Ed25519 verification. Never raises: malformed input is False."""
    if not all(isinstance(v, bytes | bytearray) for v in (message, signature, public_key)):
        return False
    if len(public_key) != PUBLIC_KEY_SIZE or len(signature) != SIGNATURE_SIZE:
        return False
    try:
        VerifyKey(bytes(public_key)).verify(bytes(message), bytes(signature))
    except (BadSignatureError, ValueError, TypeError):
        return False
    return True


def require_attested_match(
    attestation: Attestation,
    lend_order_id: str,
    borrow_order_id: str,
    public_key: bytes,
) -> None:
    """Gate for anything about to move funds. Raises SignatureInvalidError."""
    if not message_matches(attestation.message, lend_order_id, borrow_order_id):
        logger.warning(
            "Attestation message does not cover %s/%s", lend_order_id, borrow_order_id
        )
        raise SignatureInvalidError("message does not attest this order pair")
    if not verify(attestation.message, attestation.signature, public_key):
        raise SignatureInvalidError()
