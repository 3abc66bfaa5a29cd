"""Container format tests for gost2file.

These tests validate byte-level container layout.

Test categories:
- test_container_format.py: Layout parsing and size rules
- test_container_malformed.py: Malformed container handling
"""
