"""GraphQL schema assembly."""

from .builder import MutationSchemaBuilder

__all__ = ["MutationSchemaBuilder"]
