"""
Core modules for the SGCC widget.

This package contains the data pipeline: account fetching with cache
fallback, progressive tariff classification, chart series and display
summary derivation.
"""
