"""Language-specific symbol parsers used by the local host."""

from .python_parser import PythonParser
from .ts_parser import TSParser

__all__ = ["PythonParser", "TSParser"]
