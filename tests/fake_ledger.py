"""
fake_ledger.py - Test Helper for the Ledger Collaborator

Provides a ValidatedLedger whose sessions can be told to fail at each step,
and which counts how often sessions are opened and released.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Set, Tuple

from kvledger import App, LedgerError, Transaction, WriteSet, to_int


class FakeSession:
    """Simulator or query executor over a plain dict, with failure switches."""

    def __init__(self, ledger: 'FakeLedger'):
        self._ledger = ledger
        self.writes: Dict[Tuple[str, str], bytes] = {}
        self.reads: List[Tuple[str, str]] = []
        self.done_calls = 0

    def get_state(self, namespace: str, key: str) -> Optional[bytes]:
        self.reads.append((namespace, key))
        if key in self._ledger.fail_reads_for:
            raise LedgerError(f"disk error reading {key}")
        return self._ledger.state.get((namespace, key))

    def set_state(self, namespace: str, key: str, value: bytes) -> None:
        self.writes[(namespace, key)] = value

    def get_tx_simulation_results(self) -> bytes:
        if self._ledger.fail_extract:
            raise LedgerError("cannot serialize write-set")
        return repr(sorted(self.writes.items())).encode()

    def done(self) -> None:
        self.done_calls += 1
        if self._ledger.fail_done:
            raise LedgerError("release failed")


class FakeLedger:
    """
    Minimal ValidatedLedger for testing the App protocol.

    Example:
        ledger = FakeLedger(state={("PaymentApp", "alice"): to_bytes(100)})
        ledger.fail_reads_for.add("bob")

        app = App(ledger, verbose=False)
        with pytest.raises(ReadFailed):
            app.transfer_funds("alice", "bob", 10)
        assert ledger.simulators[0].done_calls == 1
    """

    def __init__(self, state: Optional[Dict[Tuple[str, str], bytes]] = None):
        self.state: Dict[Tuple[str, str], bytes] = dict(state or {})
        self.simulators: List[FakeSession] = []
        self.query_executors: List[FakeSession] = []
        self.fail_open = False
        self.fail_extract = False
        self.fail_done = False
        self.fail_reads_for: Set[str] = set()

    def new_tx_simulator(self) -> FakeSession:
        if self.fail_open:
            raise LedgerError("ledger closed")
        session = FakeSession(self)
        self.simulators.append(session)
        return session

    def new_query_executor(self) -> FakeSession:
        if self.fail_open:
            raise LedgerError("ledger closed")
        session = FakeSession(self)
        self.query_executors.append(session)
        return session


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def writes_of(tx: Transaction) -> Dict[str, int]:
    """Decode a single-action proposal into account -> balance written."""
    assert len(tx.endorsed_actions) == 1
    write_set = WriteSet.from_bytes(tx.endorsed_actions[0].action_bytes)
    return {w.key.account_id: to_int(w.value) for w in write_set.writes}


def total_balance(app: App, accounts: List[str]) -> int:
    return sum(app.query_balances(accounts))
