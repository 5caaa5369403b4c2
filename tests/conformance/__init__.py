"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the payments engine.

The tests are organized by invariant:
1. test_conservation.py - Funds are conserved except for chargebacks
2. test_atomicity.py - Rejected records change nothing
3. test_locking.py - Locked accounts are frozen
4. test_determinism.py - Replaying the same input gives the same result

These tests use hypothesis for property-based testing.
"""
