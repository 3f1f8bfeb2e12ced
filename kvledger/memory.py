"""
memory.py - In-Memory Ledger Collaborator

A small reference implementation of the ValidatedLedger protocol. It keeps
committed state in a dict, hands out simulators and query executors over it,
and applies proposals on commit(). There is no endorsement, versioning or
conflict detection: commit() applies whatever write-set it is given.

Write-sets are serialized as canonical JSON (sorted keys, hex values) so the
same writes always produce the same bytes and the same Transaction.tx_id.
"""

from __future__ import annotations
from dataclasses import dataclass
import json
from typing import Dict, List, Optional, Tuple

from .core import (
    AccountKey, Transaction,
    LedgerError,
)


# ============================================================================
# WRITE-SET
# ============================================================================

@dataclass(frozen=True, slots=True)
class KVWrite:
    """A single buffered write: key plus the raw value bytes."""
    key: AccountKey
    value: bytes


@dataclass(frozen=True, slots=True)
class WriteSet:
    """
    All writes of one simulation, ordered by (namespace, key).

    Attributes:
        writes: Writes sorted by key, at most one per key
    """
    writes: Tuple[KVWrite, ...] = ()

    def __post_init__(self):
        ordered = tuple(sorted(self.writes, key=lambda w: (w.key.namespace, w.key.account_id)))
        seen = set()
        for w in ordered:
            if w.key in seen:
                raise ValueError(f"Duplicate write for {w.key!r}")
            seen.add(w.key)
        object.__setattr__(self, 'writes', ordered)

    def is_empty(self) -> bool:
        return len(self.writes) == 0

    def as_dict(self) -> Dict[Tuple[str, str], bytes]:
        return {(w.key.namespace, w.key.account_id): w.value for w in self.writes}

    def to_bytes(self) -> bytes:
        payload = {
            "writes": [
                {"ns": w.key.namespace, "key": w.key.account_id, "value": w.value.hex()}
                for w in self.writes
            ]
        }
        return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()

    @classmethod
    def from_bytes(cls, data: bytes) -> 'WriteSet':
        """
        Parse bytes produced by to_bytes().

        Raises:
            LedgerError: If data is not a serialized write-set
        """
        try:
            payload = json.loads(data.decode())
            writes = tuple(
                KVWrite(AccountKey(w["ns"], w["key"]), bytes.fromhex(w["value"]))
                for w in payload["writes"]
            )
            return cls(writes)
        except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
            raise LedgerError(f"Malformed write-set: {e}") from e


# ============================================================================
# SESSIONS
# ============================================================================

class InMemoryQueryExecutor:
    """Read-only view of the ledger's committed state."""

    def __init__(self, ledger: 'InMemoryLedger'):
        self._ledger = ledger
        self._done = False

    @property
    def is_done(self) -> bool:
        return self._done

    def get_state(self, namespace: str, key: str) -> Optional[bytes]:
        self._check_open()
        return self._ledger.get_state(namespace, key)

    def done(self) -> None:
        self._done = True

    def _check_open(self) -> None:
        if self._done:
            raise LedgerError(f"{type(self).__name__} already released")


class InMemoryTxSimulator(InMemoryQueryExecutor):
    """
    Simulator reading committed state and buffering writes.

    Reads never see the simulator's own buffered writes. Writing a key twice
    keeps the last value.
    """

    def __init__(self, ledger: 'InMemoryLedger'):
        super().__init__(ledger)
        self._writes: Dict[AccountKey, bytes] = {}

    def set_state(self, namespace: str, key: str, value: bytes) -> None:
        self._check_open()
        self._writes[AccountKey(namespace, key)] = bytes(value)

    def get_tx_simulation_results(self) -> bytes:
        """Serialize the buffered writes and release the simulator."""
        self._check_open()
        write_set = WriteSet(tuple(KVWrite(k, v) for k, v in self._writes.items()))
        self.done()
        return write_set.to_bytes()


# ============================================================================
# LEDGER
# ============================================================================

class InMemoryLedger:
    """
    Dict-backed ledger implementing the ValidatedLedger protocol.

    Not thread-safe.

    Example:
        ledger = InMemoryLedger(verbose=False)
        app = App(ledger, verbose=False)
        ledger.commit(app.init({"alice": 100}))
        app.query_balances(["alice"])   # [100]
    """

    def __init__(self, name: str = "kvledger", verbose: bool = True):
        self.name = name
        self.verbose = verbose
        self.state: Dict[Tuple[str, str], bytes] = {}
        self.transaction_log: List[Transaction] = []

    def new_tx_simulator(self) -> InMemoryTxSimulator:
        return InMemoryTxSimulator(self)

    def new_query_executor(self) -> InMemoryQueryExecutor:
        return InMemoryQueryExecutor(self)

    def get_state(self, namespace: str, key: str) -> Optional[bytes]:
        """Committed value for key, or None."""
        return self.state.get((namespace, key))

    def commit(self, tx: Transaction) -> None:
        """
        Apply every write-set carried by tx.

        All actions are parsed before anything is applied, so a malformed
        action leaves the state untouched.

        Raises:
            LedgerError: If any action is not a serialized write-set
        """
        write_sets = [WriteSet.from_bytes(a.action_bytes) for a in tx.endorsed_actions]
        for write_set in write_sets:
            self.state.update(write_set.as_dict())
        self.transaction_log.append(tx)

        if self.verbose:
            count = sum(len(ws.writes) for ws in write_sets)
            print(f"✓ COMMITTED {tx.tx_id} to {self.name}: {count} write(s)")
