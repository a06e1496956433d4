from __future__ import annotations

from .types import KIND_LABELS, SessionKind

_BUSY_NOTICES = {
    SessionKind.NUMBER_GUESS: (
        'A "Guess the Number" game is already in progress! Use `!guess [number]` or `!stopguess`.'
    ),
    SessionKind.EMOJI_GUESS: (
        "An Emoji Guessing game is already in progress! Use `!guess [answer]` or `!stopemojiguess`."
    ),
}


class SessionError(Exception):
    """Base class for failures that end one message's processing with a notice."""

    notice = "Something went wrong. Please try again later."

    def __init__(self, notice: str | None = None):
        if notice is not None:
            self.notice = notice
        super().__init__(self.notice)


class AlreadyInProgressError(SessionError):
    def __init__(self, room_id: str, kind: SessionKind, notice: str | None = None):
        self.room_id = room_id
        self.kind = kind
        super().__init__(notice or _BUSY_NOTICES.get(kind, f"A {KIND_LABELS[kind]} session is already active."))


class NoActiveSessionError(SessionError):
    def __init__(self, room_id: str, kind: SessionKind | None, notice: str | None = None):
        self.room_id = room_id
        self.kind = kind
        super().__init__(notice or f"There is no active {KIND_LABELS.get(kind, 'room')} session.")


class NoActiveGameError(NoActiveSessionError):
    def __init__(self, room_id: str, kind: SessionKind | None = None, notice: str | None = None):
        if notice is None:
            if kind is None:
                notice = (
                    'No active "Guess the Number" or "Emoji Guessing" game. '
                    "Start one with `!startguess` or `!emojiguess`!"
                )
            else:
                notice = f"No {KIND_LABELS[kind]} game is active to stop."
        super().__init__(room_id, kind, notice)


class InvalidGuessFormatError(SessionError):
    notice = "That's not a valid number. Please guess a number!"

    def __init__(self, raw_guess: str):
        self.raw_guess = raw_guess
        super().__init__()


class NoVoiceChannelError(SessionError):
    notice = "You need to be in a voice channel to play music!"


class MissingPermissionError(SessionError):
    notice = "I need the permissions to join and speak in your voice channel!"


class MediaNotFoundError(SessionError):
    def __init__(self, query: str):
        self.query = query
        super().__init__("Could not find anything to play for that search query.")


class ProviderUnavailableError(SessionError):
    notice = "Oops! My brain is taking a nap. Try again later!"

    def __init__(self, provider: str, reason: str = ""):
        self.provider = provider
        self.reason = reason
        super().__init__()


class TransportFatalError(SessionError):
    def __init__(self, room_id: str, cause: object):
        self.room_id = room_id
        self.cause = cause
        super().__init__(f"An error occurred while playing: {cause}")


class UsageError(SessionError):
    pass
