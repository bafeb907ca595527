"""Chronose - employee time tracking engine"""

__version__ = "0.1.0"
