"""
Vacation Tracker API - team vacation board backed by GitHub Issues.
"""

__version__ = "1.0.0"
