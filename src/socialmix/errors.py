#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exceptions and warnings raised while building contact matrices.
"""


class SocialMixError(Exception):
    """Base class for errors raised by socialmix."""


class ConfigurationError(SocialMixError, ValueError):
    """
    Raised for settings that cannot be resolved, e.g. a country code
    without an ISO3 mapping or an unknown processing mode.
    """


class NotFoundError(SocialMixError, LookupError):
    """Raised when no population rows match the requested country/year."""


class SchemaError(SocialMixError, KeyError):
    """Raised when an input table lacks the columns an operation needs."""

    def __str__(self):
        # KeyError quotes its argument, keep the message readable
        return str(self.args[0]) if self.args else ''


class EmptyInputWarning(UserWarning):
    """
    Emitted when contacts or participants are empty and no matrix
    can be produced.
    """


def require_columns(df, columns, table_name):
    """
    Raise :class:`SchemaError` if any of `columns` is missing from `df`.
    """
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise SchemaError("%s is missing column(s): %s" % (
            table_name, ", ".join(missing)))
