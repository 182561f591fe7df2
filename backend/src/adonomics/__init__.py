"""
Adonomics - creative performance analysis for video advertisements.
"""

__version__ = "0.1.0"
