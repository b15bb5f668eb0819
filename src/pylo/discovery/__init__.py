"""Discovery of rename candidates."""

from .locks import LockProber
from .models import PathSet
from .scanner import PathSetScanner

__all__ = ["LockProber", "PathSet", "PathSetScanner"]
