"""
Data Store SDK Test Suite.

This package contains:
- unit/: Unit tests (codec, builders, envelopes, configuration)
- integration/: Client tests against a mock HTTP transport
"""
