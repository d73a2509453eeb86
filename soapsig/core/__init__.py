"""Canonicalization and verification pipeline."""
