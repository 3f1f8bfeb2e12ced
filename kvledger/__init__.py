"""
kvledger - Sample Fund Transfer App over a Transactional KV Ledger

Shows the read-modify-write pattern for state changes that a separate
endorsement and commit layer validates later. The app simulates, the ledger
commits.

Usage:
    from kvledger import App, InMemoryLedger, InsufficientFunds

    ledger = InMemoryLedger("main")
    app = App(ledger)

    # Simulate an init transaction, then commit the proposal
    ledger.commit(app.init({"alice": 100, "bob": 50}))

    # Transfer between accounts
    tx = app.transfer_funds("alice", "bob", 30)
    ledger.commit(tx)

    app.query_balances(["alice", "bob"])   # [70, 80]
"""

# Core types
from .core import (
    ValidatedLedger,
    TxSimulator,
    QueryExecutor,
    AccountKey,
    Endorsement,
    EndorsedAction,
    Transaction,
    construct_transaction,
    LedgerError,
    LedgerUnavailable,
    ReadFailed,
    InsufficientFunds,
    SimulationExtractionFailed,
    encode_varint,
    decode_varint,
    to_bytes,
    to_int,
    DEFAULT_APP_NAME,
    MAX_VARINT_BYTES,
)

# App
from .app import App, construct_app_instance

# In-memory ledger
from .memory import (
    InMemoryLedger,
    InMemoryTxSimulator,
    InMemoryQueryExecutor,
    KVWrite,
    WriteSet,
)

__all__ = [
    # Core
    'ValidatedLedger',
    'TxSimulator',
    'QueryExecutor',
    'AccountKey',
    'Endorsement',
    'EndorsedAction',
    'Transaction',
    'construct_transaction',
    'LedgerError',
    'LedgerUnavailable',
    'ReadFailed',
    'InsufficientFunds',
    'SimulationExtractionFailed',
    'encode_varint',
    'decode_varint',
    'to_bytes',
    'to_int',
    'DEFAULT_APP_NAME',
    'MAX_VARINT_BYTES',
    # App
    'App',
    'construct_app_instance',
    # In-memory ledger
    'InMemoryLedger',
    'InMemoryTxSimulator',
    'InMemoryQueryExecutor',
    'KVWrite',
    'WriteSet',
]

__version__ = '1.0.0'
