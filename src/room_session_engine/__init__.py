from .core.engine import EngineConfig, SessionEngine
from .core.errors import SessionError
from .core.games import GameManager
from .core.playback import PlaybackManager
from .core.ports import AudioTransportPort, JokePort, MediaResolverPort, ResponderPort, TextCompletionPort
from .core.registry import RoomSessionRegistry
from .core.types import InboundMessage, SessionKind, Track

__all__ = [
    "SessionEngine",
    "EngineConfig",
    "RoomSessionRegistry",
    "PlaybackManager",
    "GameManager",
    "SessionError",
    "InboundMessage",
    "SessionKind",
    "Track",
    "AudioTransportPort",
    "JokePort",
    "MediaResolverPort",
    "ResponderPort",
    "TextCompletionPort",
]
