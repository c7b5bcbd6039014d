"""
Identity backends.
"""
from .base import BaseBackend
from .chain import ChainBackend
from .loader import AuthLoader
from .memory import Indexer, InMemoryBackend

__all__ = ["AuthLoader", "BaseBackend", "ChainBackend", "Indexer",
           "InMemoryBackend"]
