"""UI layer - console front end"""

from .console import ConsoleApp, main

__all__ = ["ConsoleApp", "main"]
