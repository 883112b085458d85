"""Command-line interface module for stringiconv.

This module provides iconv-style conversion, encoding listing and backend
benchmarking from the command line.
"""

from .main import main

__all__ = ["main"]
