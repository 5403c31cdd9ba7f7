"""Benchmarking core for frelon.

Provides the timing model, calibration, histogram-backed statistics
and the suite runner that ties them together.
"""
