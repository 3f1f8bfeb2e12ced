"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the payment app.
Any compliant ledger collaborator MUST let these tests pass.

The tests are organized by invariant:
1. conservation.py - Transfers neither create nor destroy funds
2. atomicity.py - Rejected transfers write nothing; sessions are always released
3. encoding.py - Balance codec round-trips; unknown keys read as zero
4. ordering.py - Query results line up with the requested accounts

These tests use hypothesis for property-based testing.
"""
