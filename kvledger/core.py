"""
Core types and pure functions for the kvledger payment app.

This module provides the foundational pieces shared by the app and the ledger
collaborators it talks to:
1. Protocols: ValidatedLedger, TxSimulator, QueryExecutor
2. Immutable data structures: AccountKey, Endorsement, EndorsedAction, Transaction
3. Exceptions: LedgerError and the transfer error taxonomy
4. Varint codec: encode_varint, decode_varint, to_bytes, to_int

Nothing in this module touches ledger state. State changes only happen when
a collaborator commits a Transaction built here.
"""

from __future__ import annotations
from dataclasses import dataclass
import hashlib
from typing import Optional, Protocol, Tuple, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Namespace used by construct_app_instance().
DEFAULT_APP_NAME = "PaymentApp"

# A 64-bit value never needs more than 10 base-128 groups.
MAX_VARINT_BYTES = 10

_UINT64_MASK = (1 << 64) - 1
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class LedgerUnavailable(LedgerError):
    """Raised when the ledger cannot open a simulation or query context."""
    pass


class ReadFailed(LedgerError):
    """
    Raised when reading a key from the ledger fails.

    An absent key is not a failure: it reads as a zero balance.
    """

    def __init__(self, namespace: str, key: str, reason: str = ""):
        self.namespace = namespace
        self.key = key
        message = f"Read of [{namespace}/{key}] failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InsufficientFunds(LedgerError):
    """Raised when a transfer would take an account balance below zero."""

    def __init__(self, account_id: str, balance: int, requested: int):
        self.account_id = account_id
        self.balance = balance
        self.requested = requested
        super().__init__(
            f"Not enough balance in account [{account_id}]. "
            f"Balance = [{balance}], transfer request = [{requested}]"
        )


class SimulationExtractionFailed(LedgerError):
    """Raised when the simulator cannot serialize its write-set."""
    pass


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class TxSimulator(Protocol):
    """
    Read/write session against versioned ledger state.

    Writes are buffered and never fail on their own; problems surface when
    the results are extracted. get_tx_simulation_results() also releases the
    session, and done() is safe to call afterwards.
    """

    def get_state(self, namespace: str, key: str) -> Optional[bytes]:
        """Return the committed value for key, or None if it was never written."""
        ...

    def set_state(self, namespace: str, key: str, value: bytes) -> None:
        ...

    def get_tx_simulation_results(self) -> bytes:
        """Serialize the buffered writes."""
        ...

    def done(self) -> None:
        """Release the session."""
        ...


@runtime_checkable
class QueryExecutor(Protocol):
    """Read-only session against the last committed ledger state."""

    def get_state(self, namespace: str, key: str) -> Optional[bytes]:
        ...

    def done(self) -> None:
        ...


@runtime_checkable
class ValidatedLedger(Protocol):
    """
    The ledger collaborator handle an App is constructed with.

    Validation, endorsement and commit all live behind this interface.
    """

    def new_tx_simulator(self) -> TxSimulator:
        ...

    def new_query_executor(self) -> QueryExecutor:
        ...


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class AccountKey:
    """
    Identity of a balance holder: the app namespace plus the account id.

    Attributes:
        namespace: Name of the app that owns the account
        account_id: Account identifier within that namespace
    """
    namespace: str
    account_id: str

    def __post_init__(self):
        if not isinstance(self.namespace, str) or not self.namespace.strip():
            raise ValueError("AccountKey namespace cannot be empty")
        if not isinstance(self.account_id, str):
            raise ValueError(f"AccountKey account_id must be str, got {type(self.account_id)}")

    def __repr__(self) -> str:
        return f"{self.namespace}/{self.account_id}"


@dataclass(frozen=True, slots=True)
class Endorsement:
    """A signature over an action, filled in by the endorsement layer."""
    endorser: bytes
    signature: bytes


@dataclass(frozen=True, slots=True)
class EndorsedAction:
    """
    One proposed action of a transaction.

    Attributes:
        action_bytes: Serialized write-set produced by a simulation
        endorsements: Endorsements collected so far (empty when proposed)
        proposal_bytes: Proposal metadata (empty when proposed)
    """
    action_bytes: bytes
    endorsements: Tuple[Endorsement, ...] = ()
    proposal_bytes: bytes = b""


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An unendorsed transaction proposal.

    Produced by App operations and handed to the caller, who forwards it
    to endorsement and commit. The app never reads it back.

    Attributes:
        endorsed_actions: Ordered actions carried by the proposal
        tx_id: Content hash of the action bytes (auto-populated)
    """
    endorsed_actions: Tuple[EndorsedAction, ...]
    tx_id: str = None

    def __post_init__(self):
        if not self.endorsed_actions:
            raise ValueError("Transaction must have at least one action")
        if self.tx_id is None:
            digest = hashlib.sha256()
            for action in self.endorsed_actions:
                digest.update(len(action.action_bytes).to_bytes(8, "big"))
                digest.update(action.action_bytes)
            object.__setattr__(self, 'tx_id', digest.hexdigest()[:16])

    @property
    def is_endorsed(self) -> bool:
        return all(a.endorsements for a in self.endorsed_actions)

    def __repr__(self) -> str:
        sizes = ", ".join(f"{len(a.action_bytes)}B" for a in self.endorsed_actions)
        return f"Transaction({self.tx_id}, actions=[{sizes}])"


def construct_transaction(simulation_results: bytes) -> Transaction:
    """
    Wrap simulation results in a single-action proposal.

    Endorsements and proposal bytes are left empty for the endorsement
    layer to fill in.
    """
    return Transaction(endorsed_actions=(
        EndorsedAction(
            action_bytes=bytes(simulation_results),
            endorsements=(),
            proposal_bytes=b"",
        ),
    ))


# ============================================================================
# VARINT CODEC
# ============================================================================

def encode_varint(value: int) -> bytes:
    """
    Encode an integer as a protobuf base-128 varint.

    The value is taken modulo 2**64, so negative numbers use their 64-bit
    two's-complement form and always take 10 bytes.

    Raises:
        ValueError: If value is outside the signed 64-bit range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Varint value must be int, got {type(value)}")
    if value < _INT64_MIN or value > _UINT64_MASK:
        raise ValueError(f"Varint value out of 64-bit range: {value}")
    n = value & _UINT64_MASK
    out = bytearray()
    while n > 0x7F:
        out.append((n & 0x7F) | 0x80)
        n >>= 7
    out.append(n)
    return bytes(out)


def decode_varint(data: bytes) -> Tuple[int, int]:
    """
    Decode a varint from the front of data.

    Returns:
        (value, bytes_consumed), or (0, 0) if data is empty, truncated, or
        longer than MAX_VARINT_BYTES without terminating.
    """
    value = 0
    shift = 0
    for i, byte in enumerate(data[:MAX_VARINT_BYTES]):
        value |= (byte & 0x7F) << shift
        if byte < 0x80:
            return value & _UINT64_MASK, i + 1
        shift += 7
    return 0, 0


def to_bytes(balance: int) -> bytes:
    """Encode a balance for storage."""
    if balance > _INT64_MAX:
        raise ValueError(f"Balance out of 64-bit range: {balance}")
    return encode_varint(balance)


def to_int(balance_bytes: Optional[bytes]) -> int:
    """
    Decode a stored balance.

    Absent or malformed bytes decode to 0. The stored value is read back as a
    signed 64-bit integer, so negative balances written by to_bytes survive.
    """
    if not balance_bytes:
        return 0
    value, _ = decode_varint(balance_bytes)
    if value > _INT64_MAX:
        value -= 1 << 64
    return value
