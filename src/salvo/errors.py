"""Exceptions raised for programming errors.

Problems with player input are never raised; they come back as guess
outcomes from :meth:`salvo.engine.session.GameSession.submit_guess`.
"""

from __future__ import annotations


class SalvoError(Exception):
    """Base class for salvo errors."""


class ConfigurationError(SalvoError, ValueError):
    """The grid/fleet configuration cannot produce a valid game."""


class SessionNotStartedError(SalvoError, RuntimeError):
    """A game operation was attempted before the session was started."""
