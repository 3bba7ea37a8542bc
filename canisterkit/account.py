"""Principals, subaccounts and ledger account identifiers."""

from __future__ import annotations

import base64
import binascii
import hashlib
import zlib
from dataclasses import dataclass
from typing import Optional

_MAX_PRINCIPAL_LENGTH = 29
_SUBACCOUNT_LENGTH = 32
_ACCOUNT_ID_LENGTH = 32
_HASH_LENGTH = 28
_CHECKSUM_LENGTH = 4
_ACCOUNT_DOMAIN = b"\x0aaccount-id"


def _crc32_be(data: bytes) -> bytes:
    return zlib.crc32(data).to_bytes(_CHECKSUM_LENGTH, "big")


class PrincipalError(ValueError):
    """Raised when a principal cannot be parsed or built."""


@dataclass(frozen=True, order=True)
class Principal:
    """An opaque identifier of a user or canister, at most 29 bytes long."""

    data: bytes = b""

    def __post_init__(self) -> None:
        data = bytes(self.data)
        if len(data) > _MAX_PRINCIPAL_LENGTH:
            raise PrincipalError(
                f"principal is {len(data)} bytes long, at most "
                f"{_MAX_PRINCIPAL_LENGTH} are allowed"
            )
        object.__setattr__(self, "data", data)

    @classmethod
    def from_text(cls, text: str) -> "Principal":
        """Parse the dashed base32 text form, verifying checksum and grouping."""
        compact = text.replace("-", "").upper()
        padded = compact + "=" * (-len(compact) % 8)
        try:
            raw = base64.b32decode(padded)
        except (binascii.Error, ValueError) as exc:
            raise PrincipalError(f"invalid principal text {text!r}: {exc}") from exc
        if len(raw) < _CHECKSUM_LENGTH:
            raise PrincipalError(f"principal text {text!r} is too short")
        checksum, data = raw[:_CHECKSUM_LENGTH], raw[_CHECKSUM_LENGTH:]
        if _crc32_be(data) != checksum:
            raise PrincipalError(f"checksum mismatch in principal text {text!r}")
        principal = cls(data)
        if principal.to_text() != text.lower():
            raise PrincipalError(
                f"principal text {text!r} is not in canonical form "
                f"{principal.to_text()!r}"
            )
        return principal

    def to_text(self) -> str:
        """Return the dashed, lower-case base32 text form."""
        encoded = (
            base64.b32encode(_crc32_be(self.data) + self.data)
            .decode("ascii")
            .rstrip("=")
            .lower()
        )
        return "-".join(encoded[i : i + 5] for i in range(0, len(encoded), 5))

    @classmethod
    def anonymous(cls) -> "Principal":
        """The anonymous principal."""
        return cls(b"\x04")

    @classmethod
    def management_canister(cls) -> "Principal":
        """The principal of the management canister (empty bytes)."""
        return cls(b"")

    def __str__(self) -> str:
        return self.to_text()

    def __bytes__(self) -> bytes:
        return self.data


@dataclass(frozen=True, order=True)
class Subaccount:
    """An arbitrary 32-byte value that lets one principal own many accounts."""

    data: bytes

    def __post_init__(self) -> None:
        data = bytes(self.data)
        if len(data) != _SUBACCOUNT_LENGTH:
            raise ValueError(
                f"subaccount must be {_SUBACCOUNT_LENGTH} bytes, got {len(data)}"
            )
        object.__setattr__(self, "data", data)

    @classmethod
    def from_principal(cls, principal: Principal) -> "Subaccount":
        """Length-prefixed principal bytes, zero padded to 32 bytes."""
        raw = bytes(principal)
        body = bytes([len(raw)]) + raw
        return cls(body.ljust(_SUBACCOUNT_LENGTH, b"\x00"))

    def __bytes__(self) -> bytes:
        return self.data


DEFAULT_SUBACCOUNT = Subaccount(bytes(_SUBACCOUNT_LENGTH))

MAINNET_LEDGER_CANISTER_ID = Principal(
    bytes([0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x02, 0x01, 0x01])
)
MAINNET_GOVERNANCE_CANISTER_ID = Principal(
    bytes([0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x01, 0x01, 0x01])
)
MAINNET_CYCLES_MINTING_CANISTER_ID = Principal(
    bytes([0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x04, 0x01, 0x01])
)


class AccountIdParseError(ValueError):
    """Base class for errors parsing an account identifier."""


class ChecksumError(AccountIdParseError):
    """The checksum of a 32-byte account identifier did not verify."""

    def __init__(
        self, input: bytes, expected_checksum: bytes, found_checksum: bytes
    ) -> None:
        self.input = bytes(input)
        self.expected_checksum = bytes(expected_checksum)
        self.found_checksum = bytes(found_checksum)
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Checksum failed for {self.input.hex()}, expected check bytes "
            f"{self.expected_checksum.hex()} but found {self.found_checksum.hex()}"
        )


class InvalidLengthError(AccountIdParseError):
    """The input was neither 28 nor 32 bytes long."""

    def __init__(self, input: bytes) -> None:
        self.input = bytes(input)
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"Received an invalid AccountIdentifier with length {len(self.input)} "
            "bytes instead of the expected 28 or 32."
        )


@dataclass(frozen=True, order=True)
class AccountIdentifier:
    """A 32-byte account id: a big-endian CRC-32 of the 28-byte hash that follows."""

    data: bytes

    def __post_init__(self) -> None:
        data = bytes(self.data)
        if len(data) != _ACCOUNT_ID_LENGTH:
            raise ValueError(
                f"account identifier must be {_ACCOUNT_ID_LENGTH} bytes, "
                f"got {len(data)}"
            )
        object.__setattr__(self, "data", data)

    @classmethod
    def from_principal(
        cls, owner: Principal, subaccount: Optional[Subaccount] = None
    ) -> "AccountIdentifier":
        """Derive the account id of ``owner`` and ``subaccount``."""
        if subaccount is None:
            subaccount = DEFAULT_SUBACCOUNT
        digest = hashlib.sha224(
            _ACCOUNT_DOMAIN + bytes(owner) + bytes(subaccount)
        ).digest()
        return cls(_crc32_be(digest) + digest)

    @classmethod
    def from_hex(cls, hex_str: str) -> "AccountIdentifier":
        """Parse 64 (checksummed) or 56 (hash only) hex digits."""
        try:
            raw = bytes.fromhex(hex_str)
        except ValueError as exc:
            raise ValueError(f"invalid hex string {hex_str!r}: {exc}") from exc
        try:
            return cls.from_slice(raw)
        except InvalidLengthError:
            raise ValueError(
                f"{hex_str} has a length of {len(hex_str)} but we expected "
                "a length of 64 or 56"
            ) from None

    @classmethod
    def from_slice(cls, data: bytes) -> "AccountIdentifier":
        """Parse a 32-byte canonical id (checksum verified) or a 28-byte hash."""
        data = bytes(data)
        if len(data) == _ACCOUNT_ID_LENGTH:
            found = data[:_CHECKSUM_LENGTH]
            expected = _crc32_be(data[_CHECKSUM_LENGTH:])
            if found != expected:
                raise ChecksumError(data, expected, found)
            return cls(data)
        if len(data) == _HASH_LENGTH:
            return cls.from_hash(data)
        raise InvalidLengthError(data)

    @classmethod
    def from_hash(cls, hash_bytes: bytes) -> "AccountIdentifier":
        """Build an id from its 28-byte hash, prepending the checksum."""
        hash_bytes = bytes(hash_bytes)
        if len(hash_bytes) != _HASH_LENGTH:
            raise ValueError(
                f"account hash must be {_HASH_LENGTH} bytes, got {len(hash_bytes)}"
            )
        return cls(_crc32_be(hash_bytes) + hash_bytes)

    @classmethod
    def from_bytes(cls, data: bytes) -> "AccountIdentifier":
        """Build an id from exactly 32 bytes, verifying the checksum."""
        data = bytes(data)
        if len(data) != _ACCOUNT_ID_LENGTH:
            raise ValueError(
                f"account identifier must be {_ACCOUNT_ID_LENGTH} bytes, "
                f"got {len(data)}"
            )
        if data[:_CHECKSUM_LENGTH] != _crc32_be(data[_CHECKSUM_LENGTH:]):
            raise ValueError("CRC-32 checksum failed to verify")
        return cls(data)

    def to_hex(self) -> str:
        """Lower-case hex of the 32 bytes."""
        return self.data.hex()

    def generate_checksum(self) -> bytes:
        """The checksum computed from the hash part."""
        return _crc32_be(self.data[_CHECKSUM_LENGTH:])

    def __str__(self) -> str:
        return self.to_hex()

    def __bytes__(self) -> bytes:
        return self.data