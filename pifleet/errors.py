"""pifleet exception hierarchy.

Only these are fatal to a run. Everything else is logged and the run continues.
"""

from __future__ import annotations


class PifleetError(Exception):
    """Base exception for all pifleet errors."""


class ConfigError(PifleetError):
    """Raised when the configuration is invalid or cannot be read."""


class PrivilegeError(PifleetError):
    """Raised when the process lacks root privileges."""


class AuditNotFoundError(PifleetError):
    """Raised when no audit document was given or found."""


class OutputError(PifleetError):
    """Raised when output locations cannot be created or the audit document cannot be written."""
