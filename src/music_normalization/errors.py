# music_normalization/errors.py

"""Exceptions raised by the migration pipeline and the guarded store."""

from __future__ import annotations


class MigrationError(Exception):
    """Base class for all errors surfaced by this package."""


class SchemaError(MigrationError):
    """Table creation conflicts with an incompatible existing schema."""


class IntegrityViolation(MigrationError):
    """A mandatory parent reference is missing at insert time."""


class ConstraintViolation(MigrationError):
    """A row-level check (title, duration, age) rejected a write."""


# Older name used by callers that treat guard failures as validation errors.
ValidationError = IntegrityViolation
