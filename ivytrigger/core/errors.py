"""
Fatal evaluation errors.

Anything raised from this hierarchy aborts the evaluation: the
evaluator logs it and returns no result. Problems the resolver reports
about individual modules are not errors in this sense.
"""

from __future__ import annotations


class TriggerError(Exception):
    """Base class for errors that abort an evaluation."""


class SettingsError(TriggerError):
    """Resolver settings are missing, unreadable or malformed."""


class VariablesError(TriggerError):
    """A properties source could not be read."""


class DescriptorError(TriggerError):
    """The dependency descriptor is missing or cannot be parsed."""


class ResolveError(TriggerError):
    """The resolve engine failed without producing a report."""
