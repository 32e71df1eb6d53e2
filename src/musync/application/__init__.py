"""
Application Layer

Contains use cases, command handlers, and application services.
This layer orchestrates domain objects and infrastructure to fulfill use cases.

Structure:
- commands/: handlers for the user-facing music commands
- services/: guild sessions, the session registry and the playback driver
- interfaces/: Port interfaces for infrastructure adapters
"""
