"""
Resilience tests for gost2file.

This module contains tests that verify codec behavior under adverse I/O:
- Short reads and trickling sources
- Partial, stalled and failing writes
- Non-seekable sources
- Chunk-size independence
"""
