"""Signer protocol and the in-process Ed25519 signer.

A Signer is the trusted compute boundary: it holds (or fronts) the private
key. LocalKeySigner keeps the key in process memory and is what tests and
single-host deployments use; RemoteEnclaveSigner (infrastructure) fronts a
real enclave over HTTP.
"""
from typing import Protocol

from nacl.encoding import HexEncoder
from nacl.signing import SigningKey


class Signer(Protocol):
    mode: str

    @property
    def public_key(self) -> bytes: ...

    async def sign(self, message: bytes) -> bytes: ...


class LocalKeySigner:
    mode = "local"

    def __init__(self, signing_key: SigningKey) -> None:
        self._key = signing_key

    @classmethod
    def generate(cls) -> "LocalKeySigner":
        return cls(SigningKey.generate())

    @classmethod
    def from_seed_hex(cls, seed_hex: str) -> "LocalKeySigner":
        """32-byte seed as 64 hex chars (optional 0x prefix)."""
        seed = seed_hex[2:] if seed_hex.startswith("0x") else seed_hex
        return cls(SigningKey(seed.encode("ascii"), encoder=HexEncoder))

    @property
    def public_key(self) -> bytes:
        return bytes(self._key.verify_key)

    async def sign(self, message: bytes) -> bytes:
        return self._key.sign(message).signature
