"""
app.py - Sample Fund Transfer App

The App turns balance operations into simulations against a ledger
collaborator and hands back unendorsed Transaction proposals.

Key responsibilities:
    - Opens one simulator per init/transfer, and one query executor per query batch
    - Checks funds before any write, so a rejected transfer writes nothing
    - Releases every simulator it opens, on success and failure alike
    - Never commits: the caller forwards proposals to endorsement and commit
"""

from __future__ import annotations
from typing import List, Mapping, Optional, Sequence

from .core import (
    # Types
    AccountKey, Transaction, TxSimulator, QueryExecutor, ValidatedLedger,
    # Constants
    DEFAULT_APP_NAME,
    # Exceptions
    LedgerError, LedgerUnavailable, ReadFailed, InsufficientFunds,
    SimulationExtractionFailed,
    # Helper functions
    construct_transaction, to_bytes, to_int,
)


class App:
    """
    Payment app storing integer balances under its own namespace.

    The ledger handle is shared with other callers; the app only keeps a
    reference to it and its name. No other state survives between calls.

    Thread Safety:
        Each call runs its ledger calls sequentially. Isolation between
        concurrent simulations is the ledger's job.

    Example:
        app = App(ledger, verbose=False)
        tx = app.init({"alice": 100, "bob": 50})
        ledger.commit(tx)

        tx = app.transfer_funds("alice", "bob", 30)
        ledger.commit(tx)
        app.query_balances(["alice", "bob"])   # [70, 80]
    """

    def __init__(self, ledger: ValidatedLedger, name: str = DEFAULT_APP_NAME, verbose: bool = True):
        """
        Create an app bound to a ledger.

        Args:
            ledger: Ledger collaborator that opens simulators and query executors
            name: Namespace for the app's keys (default: "PaymentApp")
            verbose: Print the outcome of each operation (default: True)
        """
        if ledger is None:
            raise ValueError("App requires a ledger")
        if not name or not name.strip():
            raise ValueError("App name cannot be empty")
        self.name = name
        self.ledger = ledger
        self.verbose = verbose

    def __repr__(self) -> str:
        return f"App({self.name!r})"

    # ========================================================================
    # OPERATIONS
    # ========================================================================

    def init(self, initial_balances: Mapping[str, int]) -> Transaction:
        """
        Simulate an init transaction setting the given balances.

        Balances are written as given; negative values are accepted.

        Args:
            initial_balances: Account id -> starting balance

        Returns:
            Proposal whose write-set holds one write per account

        Raises:
            LedgerUnavailable: If the simulator cannot be opened
            SimulationExtractionFailed: If the write-set cannot be serialized
        """
        if initial_balances is None:
            raise ValueError("initial_balances cannot be None")

        tx_simulator = self._open_simulator()
        try:
            for account_id, balance in initial_balances.items():
                key = self._key(account_id)
                tx_simulator.set_state(key.namespace, key.account_id, to_bytes(balance))
            results = self._extract(tx_simulator)
        finally:
            self._release_simulator(tx_simulator)

        tx = construct_transaction(results)
        if self.verbose:
            print(f"✓ INIT {len(initial_balances)} account(s): {tx!r}")
        return tx

    def transfer_funds(self, from_account: str, to_account: str, transfer_amt: int) -> Transaction:
        """
        Simulate a transfer of transfer_amt from from_account to to_account.

        The amount's sign is not checked. A transfer from an account to
        itself still needs the funds, and leaves the balance unchanged.

        Returns:
            Proposal whose write-set holds both new balances

        Raises:
            LedgerUnavailable: If the simulator cannot be opened
            ReadFailed: If either balance cannot be read
            InsufficientFunds: If from_account would go below zero
            SimulationExtractionFailed: If the write-set cannot be serialized
            ValueError: If a new balance falls outside the signed 64-bit range;
                nothing is written in that case
        """
        if isinstance(transfer_amt, bool) or not isinstance(transfer_amt, int):
            raise TypeError(f"transfer_amt must be int, got {type(transfer_amt)}")
        from_key = self._key(from_account)
        to_key = self._key(to_account)

        tx_simulator = self._open_simulator()
        try:
            bal_from = to_int(self._read(tx_simulator, from_key))
            if bal_from - transfer_amt < 0:
                if self.verbose:
                    print(f"✗ REJECTED: transfer {from_account} -> {to_account}: "
                          f"balance {bal_from} < {transfer_amt}")
                raise InsufficientFunds(from_account, bal_from, transfer_amt)

            if from_key == to_key:
                tx_simulator.set_state(from_key.namespace, from_key.account_id, to_bytes(bal_from))
            else:
                bal_to = to_int(self._read(tx_simulator, to_key))
                new_from = to_bytes(bal_from - transfer_amt)
                new_to = to_bytes(bal_to + transfer_amt)
                tx_simulator.set_state(from_key.namespace, from_key.account_id, new_from)
                tx_simulator.set_state(to_key.namespace, to_key.account_id, new_to)
            results = self._extract(tx_simulator)
        finally:
            self._release_simulator(tx_simulator)

        tx = construct_transaction(results)
        if self.verbose:
            print(f"✓ TRANSFER {transfer_amt} {from_account} -> {to_account}: {tx!r}")
        return tx

    def query_balances(self, accounts: Sequence[str]) -> List[int]:
        """
        Read the committed balances of accounts.

        Results line up with accounts position by position. Accounts never
        written read as 0.

        Raises:
            LedgerUnavailable: If the query executor cannot be opened
            ReadFailed: On the first read that fails; the rest are skipped
        """
        keys = [self._key(account_id) for account_id in accounts]
        try:
            query_executor = self.ledger.new_query_executor()
        except Exception as e:
            raise LedgerUnavailable(f"Cannot open query executor: {e}") from e

        try:
            balances = [to_int(self._read(query_executor, key)) for key in keys]
        finally:
            self._release_query_executor(query_executor)
        return balances

    # ========================================================================
    # INTERNAL HELPERS
    # ========================================================================

    def _key(self, account_id: str) -> AccountKey:
        return AccountKey(self.name, account_id)

    def _open_simulator(self) -> TxSimulator:
        try:
            return self.ledger.new_tx_simulator()
        except Exception as e:
            raise LedgerUnavailable(f"Cannot open tx simulator: {e}") from e

    def _read(self, session, key: AccountKey) -> Optional[bytes]:
        """Read one key from a simulator or query executor."""
        try:
            return session.get_state(key.namespace, key.account_id)
        except Exception as e:
            raise ReadFailed(key.namespace, key.account_id, str(e)) from e

    def _extract(self, tx_simulator: TxSimulator) -> bytes:
        try:
            return tx_simulator.get_tx_simulation_results()
        except Exception as e:
            raise SimulationExtractionFailed(f"Cannot extract simulation results: {e}") from e

    def _release_simulator(self, tx_simulator: TxSimulator) -> None:
        """
        Release a simulator.

        A failed release is reported rather than raised, so it never hides
        the error or the proposal of the operation that opened it.
        """
        try:
            tx_simulator.done()
        except LedgerError as e:
            if self.verbose:
                print(f"⚠️  Tx simulator release failed: {e}")

    def _release_query_executor(self, query_executor: QueryExecutor) -> None:
        """
        Release a query executor.

        Query executors are read-only, so a failed release is reported
        rather than raised.
        """
        try:
            query_executor.done()
        except LedgerError as e:
            if self.verbose:
                print(f"⚠️  Query executor release failed: {e}")


def construct_app_instance(ledger: ValidatedLedger) -> App:
    """Construct a payment app with the default name."""
    return App(ledger, DEFAULT_APP_NAME)
