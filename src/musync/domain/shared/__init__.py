"""
Shared Domain Kernel

Contains types and exceptions shared across the package.
"""

from musync.domain.shared.exceptions import (
    DomainError,
    InvalidOperationError,
    PlaybackError,
    ResolutionError,
    StreamResolutionError,
    UserPreconditionError,
    VoiceConnectionError,
)

__all__ = [
    "DomainError",
    "InvalidOperationError",
    "ResolutionError",
    "StreamResolutionError",
    "UserPreconditionError",
    "VoiceConnectionError",
    "PlaybackError",
]
