"""Centralized message constants for error messages, log templates, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Settings Validation Errors (templates)
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Resolver Errors
    RESOLVER_TIMEOUT = "Resolver timed out after {timeout}s"
    RESOLVER_EXIT_CODE = "Resolver exited with status {code}: {stderr}"
    RESOLVER_NOT_FOUND = "Resolver executable not found: {executable}"
    RESOLVER_INVALID_JSON = "Resolver returned malformed metadata"
    RESOLVER_NO_RESULT = "Resolver returned no usable result"
    RESOLVER_EMPTY_STREAM = "Resolver returned an empty stream address"

    # Playback Errors
    PLAYER_NOT_CONNECTED = "Voice client for guild {guild_id} is not connected"
    PLAYER_REJECTED_SOURCE = "Audio sink rejected the resource: {error}"

    # Authentication/Security Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD_TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Resolver
    RESOLVER_SEARCHING = "Searching for %r"
    RESOLVER_SEARCH_FAILED = "Search failed for %r: %s"
    RESOLVER_SEARCH_RESOLVED = "Resolved %r to '%s' (%s)"
    RESOLVER_STREAM_FAILED = "Stream resolution failed for %s: %s"
    RESOLVER_TIMEOUT = "Resolver timed out after %.1fs, killing pid %s"
    RESOLVER_CANCELLED = "Resolver call cancelled, killing pid %s"

    # Voice/Audio Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_DISCONNECTED_EXTERNALLY = "Bot was disconnected from voice in guild %s, dropping session"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect from voice in guild %s"
    GUILD_NOT_FOUND = "Guild %s not found"
    CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"

    # Sink Operations
    PLAYBACK_STARTED = "Sink started stream in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_ERROR = "Playback error in guild %s: %s"
    TRACK_ENDED = "Stream ended in guild %s (error: %s)"

    # Session Registry
    SESSION_CREATED = "Created session for guild %s in channel %s"
    SESSION_REMOVED = "Removed session for guild %s (reason=%s)"
    SESSION_NOT_FOUND = "No session found for guild %s"
    SESSION_SUPERSEDED = "Session for guild %s was replaced, skipping removal"
    SESSION_SUBSCRIBE_FAILED = "Failed to subscribe player in guild %s, releasing connection"
    SESSION_CLOSE_ERROR = "Error while closing session for guild %s"
    SESSIONS_DRAINED = "Drained %d session(s)"

    # Playback Driver
    DRIVER_STARTED = "Playback driver started for guild %s"
    DRIVER_ALREADY_RUNNING = "Playback driver already running for guild %s"
    DRIVER_RESOLVING = "Resolving stream for '%s' in guild %s"
    DRIVER_STREAM_FAILED = "Dropping '%s' in guild %s: %s"
    DRIVER_PLAYBACK_REJECTED = "Dropping '%s' in guild %s, sink rejected it: %s"
    DRIVER_SKIPPED_WHILE_RESOLVING = "'%s' was skipped while resolving in guild %s"
    DRIVER_STALE_RESULT = "Discarding stale playback result for guild %s"
    DRIVER_CRASHED = "Playback driver for guild %s failed"
    DRIVER_STOPPED = "Playback driver for guild %s exited"
    TRACK_STARTED = "Started playing '%s' in guild %s"
    TRACK_FINISHED = "Finished '%s' in guild %s (error: %s)"
    TRACK_LOOPED = "Looping '%s' in guild %s"
    TRACK_SKIPPED = "Skipped '%s' in guild %s"
    QUEUE_EMPTY = "Queue empty in guild %s, idle teardown in %.0fs"
    IDLE_TEARDOWN = "Idle timeout reached in guild %s, tearing down session"
    IDLE_TIMER_NOOP = "Idle timer for guild %s fired but the session is active again"

    # Commands
    COMMAND_PLAY_RECEIVED = "[play] Received %s query: %s"
    COMMAND_PLAY_FAILED = "[play] Error searching for song with query %r: %s"
    COMMAND_PLAY_ERROR = "[play] Unexpected error handling play in guild %s"
    COMMAND_VOICE_FAILED = "[%s] Could not join voice in guild %s: %s"
    LOOP_MODE_CHANGED = "Loop %s in guild %s"
    QUEUE_ENQUEUED = "Enqueued '%s' at position %s in guild %s"

    # Application Lifecycle
    BOT_STARTING = "Musync is starting in {environment} mode"
    LOGGING_CONFIG_FALLBACK = "Could not load %s, falling back to basic config"
    EXTERNAL_TOOL_MISSING = "Executable %r not found on PATH, playback will fail until installed"
    BOT_SETUP = "Setting up bot..."
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_STARTING_RUN = "Starting bot..."
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %.0fs"
    BOT_CONTAINER_SHUTDOWN = "Container shutdown complete"
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_READY = "Ready! Logged in as %s (%s)"
    BOT_CONNECTED_GUILDS = "Connected to %s guilds"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_COG_LOAD_FAILED = "Failed to load cog %s: %s"

    # Bot Command Sync
    BOT_SYNC_STARTED = "Started refreshing application (/) commands."
    BOT_SYNCED_GUILD = "Synced %s commands to guild %s"
    BOT_SYNC_GUILD_FAILED = "Failed to sync to guild %s: %s"
    BOT_SYNCED_GLOBAL = "Successfully reloaded %s application (/) commands."
    BOT_SYNC_GLOBAL_FAILED = "Failed to sync commands globally: %s"

    # Bot Error Handling
    BOT_SLASH_COMMAND_ERROR = "Slash command error in '%s': %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    """

    # Success Messages
    CONNECTED = "Connected to {channel_name}!"
    NOW_PLAYING = "Now playing: **{title}**"
    ADDED_TO_QUEUE = "Added to queue: **{title}**"
    ACTION_SKIPPED = "Skipped the current song."
    ACTION_STOPPED = "Stopped the music and cleared the queue."
    ACTION_PAUSED = "Paused the music."
    ACTION_RESUMED = "Resumed the music."
    ACTION_LOOP_TOGGLED = "Looping is now **{state}** for the current song."
    QUEUE_HEADER = "**Current Queue:**"
    QUEUE_LINE = "{position}. {title}"

    # Informational
    STATE_ALREADY_CONNECTED = "Already connected to a voice channel!"

    # Precondition notices (ephemeral)
    STATE_NEED_TO_BE_IN_VOICE = "You need to be in a voice channel to use music commands!"
    STATE_SERVER_ONLY = "This command can only be used in a server."
    STATE_NOTHING_TO_SKIP = "There is no song to skip."
    STATE_NOTHING_PLAYING = "The bot is not playing anything."
    STATE_NOTHING_TO_PAUSE = "There is no song to pause."
    STATE_NOTHING_TO_RESUME = "There is no song to resume."
    STATE_QUEUE_EMPTY = "The queue is empty."
    STATE_NOTHING_TO_LOOP = "There is nothing playing to loop."

    # Error Messages
    ERROR_SONG_NOT_FOUND = "I couldn't find a video with that query or there was an error."
    ERROR_COULD_NOT_JOIN_VOICE = "I couldn't join your voice channel."
    ERROR_OCCURRED = "❌ An error occurred: {error}"
