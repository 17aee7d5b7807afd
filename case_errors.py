"""Errors raised while generating the case-study pages.

Every error here is fatal: the generator stops at the first one and the
command line entry point turns it into an exit status of 1.
"""


class GenerationError(Exception):
    """Base class for fatal generation errors."""


class ConfigError(GenerationError):
    """Content source is missing or unreadable."""


class EmptyContentError(GenerationError):
    """Content source holds no eligible case files."""


class ValidationError(GenerationError):
    """A card failed validation (empty, unsafe or duplicate slug)."""


class WriteError(GenerationError):
    """An output file could not be written."""
