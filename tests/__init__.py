"""
CRO record store test suite.

This package contains:
- unit/: Component tests against a single module
- integration/: Store and contract runtime over both ledger backends
"""
