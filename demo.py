#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Simulate, Propose, Commit

A step-by-step walkthrough of the payment app. Each step builds on the
previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1: Simulation  - init() produces a proposal, not a state change
  2: Commit      - the ledger applies the proposal's write-set
  3: Transfer    - read, check funds, write both balances
  4: Rejection   - an unaffordable transfer writes nothing
  5: Edge cases  - unknown accounts read as 0, empty init

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass, field
from typing import Dict
import sys

from kvledger import (
    App, InMemoryLedger, InsufficientFunds, WriteSet, to_int,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    app_name: str = "PaymentApp"
    initial_balances: Dict[str, int] = field(default_factory=lambda: {"A": 100, "B": 50})
    transfer_amount: int = 30
    oversized_transfer: int = 1000


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def show_write_set(tx):
    write_set = WriteSet.from_bytes(tx.endorsed_actions[0].action_bytes)
    if write_set.is_empty():
        print("    (empty write-set)")
    for w in write_set.writes:
        print(f"    {w.key!r:<20} <- {to_int(w.value)}  [{w.value.hex()}]")


# ============================================================================
# STEPS
# ============================================================================

def step_01_simulate_init(ledger: InMemoryLedger, app: App):
    step_header(1, "Simulating an Init", "init() returns a proposal; nothing is stored yet.")

    print(f">>> tx = app.init({CONFIG.initial_balances})")
    tx = app.init(CONFIG.initial_balances)
    show_write_set(tx)
    print(f"\nCommitted balances: {app.query_balances(list(CONFIG.initial_balances))}")
    wait_for_enter()
    return tx


def step_02_commit(ledger: InMemoryLedger, app: App, tx):
    step_header(2, "Committing", "The ledger applies the write-set carried by the proposal.")

    print(">>> ledger.commit(tx)")
    ledger.commit(tx)
    print(f"\nCommitted balances: {app.query_balances(list(CONFIG.initial_balances))}")
    wait_for_enter()


def step_03_transfer(ledger: InMemoryLedger, app: App):
    step_header(3, "Transferring Funds", "Read both balances, check funds, write both.")

    print(f">>> ledger.commit(app.transfer_funds('A', 'B', {CONFIG.transfer_amount}))")
    tx = app.transfer_funds("A", "B", CONFIG.transfer_amount)
    show_write_set(tx)
    ledger.commit(tx)
    print(f"\nCommitted balances: {app.query_balances(['A', 'B'])}")
    wait_for_enter()


def step_04_rejection(ledger: InMemoryLedger, app: App):
    step_header(4, "Insufficient Funds", "The funds check runs before any write.")

    before = app.query_balances(["A", "B"])
    print(f">>> app.transfer_funds('A', 'B', {CONFIG.oversized_transfer})")
    try:
        app.transfer_funds("A", "B", CONFIG.oversized_transfer)
    except InsufficientFunds as e:
        print(f"\nInsufficientFunds: {e}")
    after = app.query_balances(["A", "B"])
    print(f"Balances before: {before}  after: {after}")
    wait_for_enter()


def step_05_edge_cases(ledger: InMemoryLedger, app: App):
    step_header(5, "Edge Cases", "Unknown accounts read as 0; an empty init is still a proposal.")

    print(f">>> app.query_balances(['C'])  ->  {app.query_balances(['C'])}")
    print(">>> app.init({})")
    show_write_set(app.init({}))


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       KVLEDGER PAYMENT APP - INTERACTIVE TUTORIAL")
    print("=" * 70)

    ledger = InMemoryLedger("tutorial", verbose=True)
    app = App(ledger, CONFIG.app_name, verbose=True)

    tx = step_01_simulate_init(ledger, app)
    step_02_commit(ledger, app, tx)
    step_03_transfer(ledger, app)
    step_04_rejection(ledger, app)
    step_05_edge_cases(ledger, app)

    print(f"\nTransaction log: {len(ledger.transaction_log)} committed")


if __name__ == "__main__":
    main()
