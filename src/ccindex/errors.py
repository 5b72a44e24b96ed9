"""Exceptions raised by the ClearCase adapter."""

from __future__ import annotations


class ClearCaseError(Exception):
    """Base class for adapter failures."""


class ClientUnavailableError(ClearCaseError):
    """The cleartool executable could not be started."""


class HistoryError(ClearCaseError):
    """History could not be listed or parsed."""


class AnnotationError(ClearCaseError):
    """Annotation could not be produced or parsed."""
