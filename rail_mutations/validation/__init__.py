"""Candidate validation."""

from .validator import Validator, flatten_django_validation_error

__all__ = ["Validator", "flatten_django_validation_error"]
