"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of transfer enforcement.

The tests are organized by invariant:
1. atomicity.py - A rejected transfer changes nothing
2. conservation.py - Transfers never create or destroy tickets
3. determinism.py - Same inputs, same Decision; fees stay within bounds
4. temporal.py - Cooldown windows and event start

These tests use hypothesis for property-based testing.
"""
