"""
TuneVault - resilient upstream access layer for a music catalog proxy.
"""

__version__ = "0.1.0"
__author__ = "TuneVault Team"
