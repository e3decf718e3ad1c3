"""
sessionplanner - find mutually available session slots for two parties.
"""

__version__ = "0.1.0"
