"""Error taxonomy.

Objective:
    Give every failure mode of the folder search workflow a distinct,
    catchable type that carries enough context (offending value, missing
    capability) to diagnose a failure without re-running in debug mode.

Hierarchy:
    - :class:`FolderSearchError`
        - :class:`MalformedIdentifier` (a raw folder id cannot be transcoded)
        - :class:`InvalidFolderQueryId` (a hex id fails validation)
        - :class:`InvalidConfiguration` (conflicting options)
        - :class:`RemoteUnavailable` (admin capability missing/unreachable)
        - :class:`ParseError` (malformed status payload)

Operational notes:
    - None of these errors are retried or downgraded; they abort the current
      operation and surface to the caller.
"""

from typing import Optional


class FolderSearchError(Exception):
    """Base class for all errors raised by this package."""


class MalformedIdentifier(FolderSearchError, ValueError):
    """Raised when a raw folder identifier cannot be transcoded.

    Args:
        value: The raw (base64) identifier.
        reason: Human-readable reason.
    """

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"Malformed folder identifier {value!r}: {reason}")
        self.value = value
        self.reason = reason


class InvalidFolderQueryId(FolderSearchError, ValueError):
    """Raised when a candidate hex folder id fails validation.

    Args:
        value: The offending candidate.
    """

    def __init__(self, value: str) -> None:
        super().__init__(
            f"Invalid folder query id {value!r}: expected 48 hexadecimal characters"
        )
        self.value = value


class InvalidConfiguration(FolderSearchError, ValueError):
    """Raised when requested options cannot be combined."""


class RemoteUnavailable(FolderSearchError, RuntimeError):
    """Raised when a required remote capability is missing or unreachable.

    Args:
        capability: Name of the missing capability (usually a cmdlet name).
        detail: Optional detail from the remote service.
    """

    def __init__(self, capability: str, detail: Optional[str] = None) -> None:
        message = (
            f"Remote capability {capability!r} is not available. "
            "Check that the admin account is connected to the right endpoint "
            "and has the role that grants it."
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.capability = capability
        self.detail = detail


class ParseError(FolderSearchError, ValueError):
    """Raised when a status payload cannot be expanded.

    Args:
        payload: The payload (or offending segment).
        reason: Human-readable reason.
    """

    def __init__(self, payload: str, reason: str) -> None:
        super().__init__(f"Cannot parse payload {payload!r}: {reason}")
        self.payload = payload
        self.reason = reason
