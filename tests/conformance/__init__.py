"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the fractional ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Fixed supply, balances always sum to it
2. atomicity.py - All-or-nothing operation semantics
3. allowance_laws.py - Allowance arithmetic and spending
4. determinism.py - Reproducible behavior, replay and clone

These tests use hypothesis for property-based testing.
"""
