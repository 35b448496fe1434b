"""
Test suite for zip-ops.

Test Categories:
- Unit tests: pattern matching, source collection, permission mapping, writing
- Integration tests: full archive assembly, configuration loading and the CLI
"""
