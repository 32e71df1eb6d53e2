"""
Domain Layer

Contains pure business logic:
- shared/: Cross-cutting types, messages and exceptions
- music/: Song and playback phase definitions
"""

from musync.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
