# tests/property/__init__.py
"""Property-based tests for csvexpr.

Properties checked for ALL generated inputs, not just hand-picked examples:
- test_round_trip_properties: to_csv followed by from_csv returns the row
- test_schema_properties: schema resolution and type support invariants
- test_inference_properties: inferred schemas accept their own sample
"""
