"""Record stores consumed by the mutation pipeline."""

from .base import BaseStore, Record
from .django_store import DjangoModelStore
from .memory import InMemoryStore

__all__ = ["BaseStore", "Record", "DjangoModelStore", "InMemoryStore"]
