"""Errors raised by remote endpoint clients."""
from __future__ import annotations


class ApiError(Exception):
    """A call to the flyte api failed. Callers treat it as transient."""


class PackNotFoundError(ApiError):
    """The pack registration no longer exists on the server."""


class LinkNotFoundError(ApiError):
    """A link with the requested relation was not advertised."""
