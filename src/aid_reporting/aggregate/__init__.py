"""Aggregation helpers.

This package contains the join view that denormalizes fact rows, the
grouping engine (plain group-by and CUBE rollups) and the window-function
engine the reports are built from.
"""
