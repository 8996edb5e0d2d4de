"""
Command-line interface for stressmon.
"""

from .main import main_cli

__all__ = ["main_cli"]
