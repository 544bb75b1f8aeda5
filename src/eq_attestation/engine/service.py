"""AttestationService — signs match decisions at the trusted compute boundary.

Constructed with its signer and passed to the MatchingEngine explicitly;
there is no module-level attestor. Stateless per call, safe to share.
"""
import asyncio
import logging
from typing import Any

from src.eq_attestation.domain.message import build_message
from src.eq_attestation.domain.models import DEMO_PCR, Attestation, EnclaveDescriptor
from src.eq_attestation.domain.signature import verify
from src.eq_attestation.engine.signer import LocalKeySigner, Signer
from src.eq_attestation.infrastructure.enclave_client import RemoteEnclaveSigner
from src.eq_common.datetime_utils import to_epoch_ms, utc_now
from src.eq_common.errors import EnclaveUnavailableError

logger = logging.getLogger(__name__)


class AttestationService:
    def __init__(
        self,
        signer: Signer | None = None,
        timeout: float | None = 5.0,
        pcrs: tuple[str, str, str] = (DEMO_PCR, DEMO_PCR, DEMO_PCR),
    ) -> None:
        self._signer = signer
        self._timeout = timeout
        self._pcrs = pcrs

    @classmethod
    def from_settings(cls, settings: Any) -> "AttestationService":
        """Key material by precedence: local seed, remote enclave, ephemeral (dev), none."""
        signer: Signer | None = None
        if settings.ATTESTOR_SIGNING_KEY:
            signer = LocalKeySigner.from_seed_hex(settings.ATTESTOR_SIGNING_KEY)
        elif settings.ENCLAVE_URL and settings.ENCLAVE_PUBLIC_KEY:
            key_hex = settings.ENCLAVE_PUBLIC_KEY.removeprefix("0x")
            signer = RemoteEnclaveSigner(settings.ENCLAVE_URL, bytes.fromhex(key_hex))
        elif settings.ATTESTOR_GENERATE_EPHEMERAL_KEY:
            logger.warning("Using an ephemeral attestor key; attestations will not survive restart")
            signer = LocalKeySigner.generate()
        else:
            logger.warning("No attestor configured; every match attempt will be EnclaveUnavailable")
        return cls(
            signer=signer,
            timeout=settings.ATTESTATION_TIMEOUT_SECONDS,
            pcrs=(settings.ENCLAVE_PCR0, settings.ENCLAVE_PCR1, settings.ENCLAVE_PCR2),
        )

    @property
    def available(self) -> bool:
        return self._signer is not None

    @property
    def public_key(self) -> bytes:
        if self._signer is None:
            raise EnclaveUnavailableError()
        return self._signer.public_key

    def describe(self) -> EnclaveDescriptor:
        pcr0, pcr1, pcr2 = self._pcrs
        if self._signer is None:
            return EnclaveDescriptor("unavailable", None, pcr0, pcr1, pcr2)
        return EnclaveDescriptor(self._signer.mode, self._signer.public_key.hex(), pcr0, pcr1, pcr2)

    async def sign_message(self, message: bytes, timeout: float | None = None) -> bytes:
        """Raw signature over `message`. Raises EnclaveUnavailableError on no signer/timeout."""
        if self._signer is None:
            raise EnclaveUnavailableError()
        limit = timeout if timeout is not None else self._timeout
        try:
            return await asyncio.wait_for(self._signer.sign(message), timeout=limit)
        except TimeoutError as exc:
            raise EnclaveUnavailableError(f"signing timed out after {limit}s") from exc

    async def sign(
        self,
        lend_order_id: str,
        borrow_order_id: str,
        score: int,
        timestamp_ms: int | None = None,
        timeout: float | None = None,
    ) -> Attestation:
        if self._signer is None:
            raise EnclaveUnavailableError()
        ts = timestamp_ms if timestamp_ms is not None else to_epoch_ms(utc_now())
        message = build_message(lend_order_id, borrow_order_id, score, ts)
        signature = await self.sign_message(message, timeout)
        return Attestation(
            message=message,
            signature=signature,
            timestamp_ms=ts,
            public_key=self._signer.public_key,
        )

    verify = staticmethod(verify)

    async def aclose(self) -> None:
        close = getattr(self._signer, "aclose", None)
        if close is not None:
            await close()
