from .dispatcher import RoomDispatcher
from .engine import EngineConfig, SessionEngine
from .errors import (
    AlreadyInProgressError,
    InvalidGuessFormatError,
    MediaNotFoundError,
    MissingPermissionError,
    NoActiveGameError,
    NoActiveSessionError,
    NoVoiceChannelError,
    ProviderUnavailableError,
    SessionError,
    TransportFatalError,
    UsageError,
)
from .games import EMOJI_PUZZLES, GameManager
from .normalize import parse_command, parse_guess_number
from .playback import PlaybackManager
from .ports import (
    AudioTransportPort,
    JokePort,
    MediaResolverPort,
    PlaybackEventsPort,
    ResponderPort,
    TextCompletionPort,
)
from .registry import RoomSessionRegistry
from .types import (
    AdvanceResult,
    EmojiGuessSession,
    EmojiPuzzle,
    Embed,
    EmbedField,
    EnqueueResult,
    GuessResult,
    InboundMessage,
    NumberGuessSession,
    ParsedCommand,
    PlaybackSession,
    PlaybackState,
    SessionKind,
    Track,
)

__all__ = [
    "SessionEngine",
    "EngineConfig",
    "RoomDispatcher",
    "RoomSessionRegistry",
    "PlaybackManager",
    "GameManager",
    "EMOJI_PUZZLES",
    "parse_command",
    "parse_guess_number",
    "AudioTransportPort",
    "JokePort",
    "MediaResolverPort",
    "PlaybackEventsPort",
    "ResponderPort",
    "TextCompletionPort",
    "SessionError",
    "AlreadyInProgressError",
    "InvalidGuessFormatError",
    "MediaNotFoundError",
    "MissingPermissionError",
    "NoActiveGameError",
    "NoActiveSessionError",
    "NoVoiceChannelError",
    "ProviderUnavailableError",
    "TransportFatalError",
    "UsageError",
    "AdvanceResult",
    "EmojiGuessSession",
    "EmojiPuzzle",
    "Embed",
    "EmbedField",
    "EnqueueResult",
    "GuessResult",
    "InboundMessage",
    "NumberGuessSession",
    "ParsedCommand",
    "PlaybackSession",
    "PlaybackState",
    "SessionKind",
    "Track",
]
