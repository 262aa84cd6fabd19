"""
solsys: JPL ephemeris state vectors and event-time root finding.
"""

__version__ = "0.1.0"
