"""Error taxonomy and fallback classification for channel failures.

Channel errors carry the vendor's numeric code (or the HTTP status when the
vendor has no code of its own) and its message. Whether a failure may be
retried through an adapter's fallback strategy is decided by a static rule
table, not by the exception type the adapter happened to raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(Enum):
    CAPABILITY = "capability"
    AUTHENTICATION = "authentication"
    FATAL = "fatal"


@dataclass(frozen=True)
class ErrorRule:
    kind: ErrorKind
    codes: frozenset[int] = frozenset()
    substring: str = ""

    def matches(self, code: int | None, message: str) -> bool:
        if self.codes and code not in self.codes:
            return False
        if self.substring and self.substring not in message:
            return False
        return bool(self.codes or self.substring)


# Authentication rules come first: a bad credential is never fixed by a
# different posting strategy, even when the message also mentions permissions.
ERROR_RULES: tuple[ErrorRule, ...] = (
    ErrorRule(ErrorKind.AUTHENTICATION, codes=frozenset({190, 102, 463, 467})),
    ErrorRule(ErrorKind.AUTHENTICATION, codes=frozenset({401})),
    ErrorRule(ErrorKind.AUTHENTICATION, substring="invalid oauth"),
    ErrorRule(ErrorKind.AUTHENTICATION, substring="access token"),
    ErrorRule(ErrorKind.AUTHENTICATION, substring="api key is invalid"),
    ErrorRule(ErrorKind.AUTHENTICATION, substring="invalid_auth"),
    ErrorRule(ErrorKind.AUTHENTICATION, substring="expired"),
    ErrorRule(ErrorKind.CAPABILITY, codes=frozenset({3, 10})),
    ErrorRule(ErrorKind.CAPABILITY, codes=frozenset(range(200, 300))),
    ErrorRule(ErrorKind.CAPABILITY, codes=frozenset({403})),
    ErrorRule(ErrorKind.CAPABILITY, substring="capability"),
    ErrorRule(ErrorKind.CAPABILITY, substring="permission"),
    ErrorRule(ErrorKind.CAPABILITY, substring="not verified"),
    ErrorRule(ErrorKind.CAPABILITY, substring="not authorized"),
    ErrorRule(ErrorKind.CAPABILITY, substring="scope"),
)


def classify_error(code: int | None, message: str | None) -> ErrorKind:
    """Return the kind of a channel error from its code and message."""
    text = (message or "").lower()
    for rule in ERROR_RULES:
        if rule.matches(code, text):
            return rule.kind
    return ErrorKind.FATAL


def should_fallback(code: int | None, message: str | None) -> bool:
    """True when the error signals a capability or permission gap."""
    return classify_error(code, message) is ErrorKind.CAPABILITY


class DistributionError(Exception):
    """Base class for all distribution failures."""


class InvalidTimeFormat(DistributionError, ValueError):
    """Raised when a date or clock string cannot be normalized."""


class ConfigurationError(DistributionError):
    """Raised when a channel's required settings are absent."""

    def __init__(self, channel: str, missing: list[str] | None = None, detail: str = "") -> None:
        self.channel = channel
        self.missing = list(missing or [])
        if not detail:
            detail = f"missing {', '.join(self.missing)}" if self.missing else "not configured"
        super().__init__(f"{channel}: {detail}")


class NoRunnableChannels(DistributionError):
    """Raised when a request resolves to zero channels that can run."""


class InvalidRequest(DistributionError):
    """Raised for malformed inbound action requests."""


class ChannelError(DistributionError):
    """A failure reported by (or while talking to) an external channel."""

    def __init__(self, channel: str, message: str, code: int | None = None, status: int | None = None) -> None:
        self.channel = channel
        self.message = message
        self.code = code
        self.status = status
        # Id of a resource the failed strategy had already created, if any.
        self.partial_id: str | None = None
        # Ids of the units of work that succeeded before the failure.
        self.completed: list[str] = []
        prefix = f"{channel} error {code}" if code is not None else f"{channel} error"
        super().__init__(f"{prefix}: {message}")

    @property
    def kind(self) -> ErrorKind:
        return classify_error(self.code, self.message)

    @classmethod
    def from_response(
        cls, channel: str, message: str, code: int | None = None, status: int | None = None,
    ) -> ChannelError:
        """Build the subclass matching the classifier's verdict."""
        kind = classify_error(code, message)
        if kind is ErrorKind.CAPABILITY:
            return CapabilityError(channel, message, code, status)
        if kind is ErrorKind.AUTHENTICATION:
            return AuthenticationError(channel, message, code, status)
        return ChannelError(channel, message, code, status)


class CapabilityError(ChannelError):
    """Channel reported a missing feature or permission."""


class AuthenticationError(ChannelError):
    """Channel rejected the credential; never retried."""


class ChannelTimeoutError(ChannelError):
    """Outbound call exceeded its time bound."""

    def __init__(self, channel: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(channel, f"request timed out after {timeout:g}s")

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.FATAL
