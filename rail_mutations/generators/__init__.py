"""Generators for mutation inputs, pipelines and operations."""

from .inputs import InputTypeFactory, compose_input_fields, compose_replace_fields

__all__ = ["InputTypeFactory", "compose_input_fields", "compose_replace_fields"]
