"""
ccbootstrap utility package entry point.
Exposes the subprocess wrapper and the sanitization helpers.
"""

from util import sanitization
from util.shell.cmd import CMD

__all__ = ["CMD", "sanitization"]
