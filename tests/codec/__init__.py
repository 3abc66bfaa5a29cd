"""Codec behavior tests for gost2file.

These tests validate end-to-end stream behavior including:
- Encrypt/decrypt round trips (test_stream_codec.py)
- Container shape and agreement with the reference model
- The per-invocation state machine
"""
