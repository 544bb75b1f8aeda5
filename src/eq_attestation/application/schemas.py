from pydantic import BaseModel

from src.eq_attestation.domain.models import Attestation


class AttestationResponse(BaseModel):
    message_hex: str
    signature_hex: str
    timestamp_ms: int
    public_key_hex: str

    @classmethod
    def from_domain(cls, att: Attestation) -> "AttestationResponse":
        return cls(
            message_hex=att.message_hex,
            signature_hex=att.signature_hex,
            timestamp_ms=att.timestamp_ms,
            public_key_hex=att.public_key.hex(),
        )


class EnclaveResponse(BaseModel):
    mode: str
    public_key_hex: str | None
    pcr0: str
    pcr1: str
    pcr2: str


class VerifyRequest(BaseModel):
    message_hex: str
    signature_hex: str
    public_key_hex: str | None = None  # defaults to this service's attestor key


class VerifyResponse(BaseModel):
    valid: bool
