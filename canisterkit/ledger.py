"""Value types exchanged with the ICP ledger canister."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Optional

from canisterkit.account import AccountIdentifier, Principal, Subaccount

_U64_MAX = 2**64 - 1
_NANOS_PER_SECOND = 1_000_000_000
_BLOCK_HASH_LENGTH = 32


def _check_u64(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"{name} must fit in an unsigned 64-bit integer, got {value}")
    return value


# The sequence number of a block in the ledger blockchain.
BlockIndex = int


@dataclass(frozen=True, order=True)
class Timestamp:
    """Number of nanoseconds from the UNIX epoch in UTC."""

    timestamp_nanos: int

    def __post_init__(self) -> None:
        _check_u64("timestamp_nanos", self.timestamp_nanos)


@dataclass(frozen=True, order=True)
class Tokens:
    """An amount of tokens counted in units of 10^-8.

    Addition and subtraction raise :class:`OverflowError` when the result
    leaves the unsigned 64-bit range.
    """

    e8s: int

    MAX: ClassVar["Tokens"]
    ZERO: ClassVar["Tokens"]
    SUBDIVIDABLE_BY: ClassVar[int] = 100_000_000

    def __post_init__(self) -> None:
        _check_u64("e8s", self.e8s)

    @classmethod
    def from_e8s(cls, e8s: int) -> "Tokens":
        """Build an amount from the number of 10^-8 tokens."""
        return cls(e8s)

    def __add__(self, other: object) -> "Tokens":
        if not isinstance(other, Tokens):
            return NotImplemented
        total = self.e8s + other.e8s
        if total > _U64_MAX:
            raise OverflowError(
                f"Add Tokens {self.e8s} + {other.e8s} failed because the "
                "underlying u64 overflowed"
            )
        return Tokens(total)

    def __sub__(self, other: object) -> "Tokens":
        if not isinstance(other, Tokens):
            return NotImplemented
        difference = self.e8s - other.e8s
        if difference < 0:
            raise OverflowError(
                f"Subtracting Tokens {self.e8s} - {other.e8s} failed because the "
                "underlying u64 underflowed"
            )
        return Tokens(difference)

    def __str__(self) -> str:
        whole, fraction = divmod(self.e8s, Tokens.SUBDIVIDABLE_BY)
        return f"{whole}.{fraction:08d}"


Tokens.MAX = Tokens(_U64_MAX)
Tokens.ZERO = Tokens(0)

DEFAULT_FEE = Tokens(10_000)


@dataclass(frozen=True, order=True)
class Memo:
    """A number the caller attaches to a transfer as a correlation id."""

    value: int

    def __post_init__(self) -> None:
        _check_u64("memo", self.value)


@dataclass(frozen=True)
class AccountBalanceArgs:
    """Arguments for the ``account_balance`` call."""

    account: AccountIdentifier


@dataclass(frozen=True, kw_only=True)
class TransferArgs:
    """Arguments for the ``transfer`` call.

    ``from_subaccount`` of None means the default all-zero subaccount;
    ``created_at_time`` of None lets the ledger use its current time.
    """

    memo: Memo
    amount: Tokens
    fee: Tokens
    to: AccountIdentifier
    from_subaccount: Optional[Subaccount] = None
    created_at_time: Optional[Timestamp] = None


class TransferError:
    """Base of the errors a ``transfer`` call can report."""

    __slots__ = ()


@dataclass(frozen=True)
class BadFee(TransferError):
    """The fee given was not the one the ledger expects."""

    expected_fee: Tokens

    def __str__(self) -> str:
        return f"transaction fee should be {self.expected_fee}"


@dataclass(frozen=True)
class InsufficientFunds(TransferError):
    """The debit account did not hold enough tokens."""

    balance: Tokens

    def __str__(self) -> str:
        return (
            "the debit account doesn't have enough funds to complete the "
            f"transaction, current balance: {self.balance}"
        )


@dataclass(frozen=True)
class TxTooOld(TransferError):
    """The request was created outside the permitted window."""

    allowed_window_nanos: int

    def __str__(self) -> str:
        seconds = self.allowed_window_nanos // _NANOS_PER_SECOND
        return f"transaction is older than {seconds} seconds"


@dataclass(frozen=True)
class TxCreatedInFuture(TransferError):
    """The request's ``created_at_time`` lies in the future."""

    def __str__(self) -> str:
        return "transaction's created_at_time is in future"


@dataclass(frozen=True)
class TxDuplicate(TransferError):
    """The ledger has already executed this request."""

    duplicate_of: BlockIndex

    def __str__(self) -> str:
        return (
            "transaction is a duplicate of another transaction in block "
            f"{self.duplicate_of}"
        )


class Operation:
    """Base of the contents of a ledger transaction."""

    __slots__ = ()


@dataclass(frozen=True)
class Mint(Operation):
    """Tokens were minted into an account."""

    to: AccountIdentifier
    amount: Tokens


@dataclass(frozen=True)
class Burn(Operation):
    """Tokens were burned from an account."""

    from_: AccountIdentifier
    amount: Tokens


@dataclass(frozen=True)
class Transfer(Operation):
    """Tokens moved from one account to another."""

    from_: AccountIdentifier
    to: AccountIdentifier
    amount: Tokens
    fee: Tokens


@dataclass(frozen=True)
class Approve(Operation):
    """An account allowed another to spend tokens on its behalf."""

    from_: AccountIdentifier
    spender: AccountIdentifier
    expires_at: Optional[Timestamp]
    fee: Tokens


@dataclass(frozen=True)
class TransferFrom(Operation):
    """A spender moved tokens out of an account after an approval."""

    from_: AccountIdentifier
    to: AccountIdentifier
    spender: AccountIdentifier
    amount: Tokens
    fee: Tokens


@dataclass(frozen=True)
class Transaction:
    """A recorded ledger transaction."""

    memo: Memo
    operation: Optional[Operation]
    created_at_time: Timestamp


@dataclass(frozen=True)
class Block:
    """A single record in the ledger."""

    parent_hash: Optional[bytes]
    transaction: Transaction
    timestamp: Timestamp

    def __post_init__(self) -> None:
        if self.parent_hash is not None:
            parent_hash = bytes(self.parent_hash)
            if len(parent_hash) != _BLOCK_HASH_LENGTH:
                raise ValueError(
                    f"parent hash must be {_BLOCK_HASH_LENGTH} bytes, "
                    f"got {len(parent_hash)}"
                )
            object.__setattr__(self, "parent_hash", parent_hash)


@dataclass(frozen=True)
class GetBlocksArgs:
    """Arguments for fetching a range of blocks."""

    start: BlockIndex
    length: int

    def __post_init__(self) -> None:
        _check_u64("start", self.start)
        _check_u64("length", self.length)


@dataclass(frozen=True)
class QueryArchiveFn:
    """A query method on an archive canister that returns archived blocks."""

    principal: Principal
    method: str


@dataclass(frozen=True)
class ArchivedBlockRange:
    """A range of archived blocks and the function that fetches them."""

    start: BlockIndex
    length: int
    callback: QueryArchiveFn


@dataclass(frozen=True)
class QueryBlocksResponse:
    """The result of ``query_blocks``."""

    chain_length: int
    certificate: Optional[bytes]
    blocks: list[Block] = field(default_factory=list)
    first_block_index: BlockIndex = 0
    archived_blocks: list[ArchivedBlockRange] = field(default_factory=list)


@dataclass(frozen=True)
class BlockRange:
    """A prefix of a requested block range."""

    blocks: list[Block] = field(default_factory=list)


class GetBlocksError:
    """Base of the errors reported when fetching blocks."""

    __slots__ = ()


@dataclass(frozen=True)
class BadFirstBlockIndex(GetBlocksError):
    """The requested start lies before the first block this canister serves."""

    requested_index: BlockIndex
    first_valid_index: BlockIndex

    def __str__(self) -> str:
        return (
            f"invalid first block index: requested block = {self.requested_index}, "
            f"first valid block = {self.first_valid_index}"
        )


@dataclass(frozen=True)
class OtherBlocksError(GetBlocksError):
    """Any other failure, with a machine-readable code and a message."""

    error_code: int
    error_message: str

    def __str__(self) -> str:
        return (
            f"failed to query blocks (error code {self.error_code}): "
            f"{self.error_message}"
        )


@dataclass(frozen=True)
class Symbol:
    """A token's trade symbol."""

    symbol: str