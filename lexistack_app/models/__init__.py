"""Database models shared across LexiStack modules.

Module-owned tables live in ``modules/<name>/models.py``.
"""

from ..core.extensions import db

from .dictionary import (
    Language,
    DictionaryEntry,
    DictionaryLemma,
    DictionarySense,
    DictionaryExample,
    DictionaryForm,
    DictionaryCollocation,
    DictionaryUsagePattern,
    DictionaryFormCard,
    DictionaryEntryLink,
    DictionaryCollection,
    DictionaryCollectionItem,
)
from .system import LockKey
from .user import User

__all__ = [
    'db',
    'Language',
    'DictionaryEntry',
    'DictionaryLemma',
    'DictionarySense',
    'DictionaryExample',
    'DictionaryForm',
    'DictionaryCollocation',
    'DictionaryUsagePattern',
    'DictionaryFormCard',
    'DictionaryEntryLink',
    'DictionaryCollection',
    'DictionaryCollectionItem',
    'LockKey',
    'User',
]
