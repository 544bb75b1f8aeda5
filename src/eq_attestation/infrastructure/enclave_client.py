"""HTTP client for a remote signing enclave.

Request:  POST {enclave_url}/sign  {"message": "<hex>"}
Response: 200 {"signature": "<hex>", "public_key": "<hex>"?}

The enclave public key is registered out of band (ENCLAVE_PUBLIC_KEY); every
returned signature is checked against it before it is accepted.
"""
import logging

import httpx

from src.eq_attestation.domain.signature import verify
from src.eq_common.errors import EnclaveUnavailableError, SignatureInvalidError

logger = logging.getLogger(__name__)


class RemoteEnclaveSigner:
    mode = "remote"

    def __init__(
        self,
        enclave_url: str,
        public_key: bytes,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = enclave_url.rstrip("/")
        self._public_key = public_key
        self._client = client or httpx.AsyncClient(
            headers={"user-agent": "equinox-matching/0.1"},
            follow_redirects=False,
        )

    @property
    def public_key(self) -> bytes:
        return self._public_key

    async def sign(self, message: bytes) -> bytes:
        try:
            resp = await self._client.post(f"{self._url}/sign", json={"message": message.hex()})
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as exc:
            logger.warning("Enclave request failed: %s", exc)
            raise EnclaveUnavailableError(f"enclave request failed: {exc}") from exc
        except ValueError as exc:
            raise EnclaveUnavailableError("enclave returned a non-JSON body") from exc

        try:
            signature = bytes.fromhex(body["signature"])
        except (KeyError, TypeError, ValueError) as exc:
            raise SignatureInvalidError("enclave response carries no hex signature") from exc
        if not verify(message, signature, self._public_key):
            logger.error("Enclave signature does not verify against registered key")
            raise SignatureInvalidError("enclave signature does not match registered key")
        return signature

    async def aclose(self) -> None:
        await self._client.aclose()
