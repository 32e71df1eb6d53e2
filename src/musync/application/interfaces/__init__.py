"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from musync.application.interfaces.audio_resolver import AudioResolver
from musync.application.interfaces.voice_adapter import (
    AudioPlayer,
    FinishedCallback,
    VoiceConnection,
    VoiceGateway,
)

__all__ = [
    "AudioResolver",
    "AudioPlayer",
    "FinishedCallback",
    "VoiceConnection",
    "VoiceGateway",
]
