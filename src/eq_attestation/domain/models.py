from dataclasses import dataclass

DEMO_PCR = "0x" + "00" * 48  # SHA-384 width, unmeasured enclave image


@dataclass(frozen=True)
class Attestation:
    """Signed match decision: message + Ed25519 signature + signing time."""

    message: bytes
    signature: bytes
    timestamp_ms: int
    public_key: bytes = b""

    @property
    def message_hex(self) -> str:
        return self.message.hex()

    @property
    def signature_hex(self) -> str:
        return self.signature.hex()

    def to_chain(self) -> dict[str, list[int]]:
        """vector<u8>-compatible byte lists for a transaction argument."""
        return {"message": list(self.message), "signature": list(self.signature)}


@dataclass(frozen=True)
class EnclaveDescriptor:
    """What a verifier registers out of band: the key and the measured image."""

    mode: str  # "local" | "remote" | "unavailable"
    public_key_hex: str | None
    pcr0: str = DEMO_PCR
    pcr1: str = DEMO_PCR
    pcr2: str = DEMO_PCR
