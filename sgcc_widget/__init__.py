"""
SGCC widget core.

Fetches, caches and derives electricity usage and billing data for a
home-screen widget.
"""

__version__ = "0.1.0"
