# src/eq_attestation/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends

from src.eq_attestation.application.schemas import (
    EnclaveResponse,
    VerifyRequest,
    VerifyResponse,
)
from src.eq_attestation.domain.signature import verify
from src.eq_matching.application.service import get_matching_engine
from src.eq_matching.engine.engine import MatchingEngine

router = APIRouter(prefix="/attestation", tags=["attestation"])


def _from_hex(value: str) -> bytes | None:
    try:
        return bytes.fromhex(value.removeprefix("0x"))
    except ValueError:
        return None


@router.get("/enclave", response_model=EnclaveResponse)
async def get_enclave(
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
) -> EnclaveResponse:
    d = engine.attestor.describe()
    return EnclaveResponse(
        mode=d.mode, public_key_hex=d.public_key_hex, pcr0=d.pcr0, pcr1=d.pcr1, pcr2=d.pcr2
    )


@router.post("/verify", response_model=VerifyResponse)
async def verify_attestation(
    req: VerifyRequest,
    engine: Annotated[MatchingEngine, Depends(get_matching_engine)],
) -> VerifyResponse:
    """Malformed hex or a missing key verifies as false, never as an error."""
    if req.public_key_hex is not None:
        public_key = _from_hex(req.public_key_hex)
    else:
        public_key = engine.attestor.public_key if engine.attestor.available else None
    message = _from_hex(req.message_hex)
    signature = _from_hex(req.signature_hex)
    if public_key is None or message is None or signature is None:
        return VerifyResponse(valid=False)
    return VerifyResponse(valid=verify(message, signature, public_key))
