"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ResolutionError(DomainError):
    """Raised when a search query or URL could not be turned into a song."""

    def __init__(self, query: str, message: str | None = None) -> None:
        msg = message or f"Could not resolve '{query}'"
        super().__init__(msg, code="RESOLUTION_ERROR")
        self.query = query


class StreamResolutionError(DomainError):
    """Raised when a song's direct stream address could not be obtained."""

    def __init__(self, url: str, message: str | None = None) -> None:
        msg = message or f"Could not resolve a stream for '{url}'"
        super().__init__(msg, code="STREAM_RESOLUTION_ERROR")
        self.url = url


class UserPreconditionError(DomainError):
    """Raised when the invoking user does not meet a command's precondition."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="USER_PRECONDITION")


class VoiceConnectionError(DomainError):
    """Raised when the bot could not join a voice channel."""

    def __init__(self, guild_id: int, channel_id: int, message: str | None = None) -> None:
        msg = message or f"Could not connect to channel {channel_id} in guild {guild_id}"
        super().__init__(msg, code="VOICE_CONNECTION_ERROR")
        self.guild_id = guild_id
        self.channel_id = channel_id


class PlaybackError(DomainError):
    """Raised when the audio sink refuses a playback resource."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="PLAYBACK_ERROR")


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state
