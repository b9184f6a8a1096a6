"""Cleaning utilities for the aid warehouse.

Provides partition-wise type coercion of fact rows, time key decoding and
Pydantic validation of source rows and dimension keys.
"""
