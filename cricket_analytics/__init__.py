"""
Cricket Analytics Engine

Derives career, batting, bowling, fielding and advanced analytics for a
cricket player from match-by-match performance records.
"""

__version__ = "0.1.0"
