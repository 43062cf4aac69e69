"""Error types raised by the session/share layer."""


class LiveTrackError(Exception):
    pass


class InvariantViolation(LiveTrackError, ValueError):
    """A record was about to be persisted (or read) in a state it must never be in."""


class StoreUnavailable(LiveTrackError):
    """The key-value backend could not be reached or returned an error."""


class CollisionExhaustion(LiveTrackError):
    """No unused identifier was found within the configured number of probes."""


class RequestRejected(LiveTrackError, ValueError):
    """A request parameter is outside what the server accepts."""


class NotFound(LiveTrackError, LookupError):
    """The addressed record does not exist."""


class ShareNotFound(NotFound):
    """No share behind the ID or PIN, or a group share with no live hosts."""


class SessionNotFound(NotFound):
    """The session is gone or has expired."""
