from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class SessionKind(Enum):
    PLAYBACK = "playback"
    NUMBER_GUESS = "number_guess"
    EMOJI_GUESS = "emoji_guess"


GAME_KINDS = (SessionKind.NUMBER_GUESS, SessionKind.EMOJI_GUESS)

KIND_LABELS = {
    SessionKind.PLAYBACK: "music",
    SessionKind.NUMBER_GUESS: '"Guess the Number"',
    SessionKind.EMOJI_GUESS: "Emoji Guessing",
}


class PlaybackState(Enum):
    CONNECTING = "connecting"
    PLAYING = "playing"
    IDLE = "idle"
    DRAINING = "draining"
    STOPPED = "stopped"


@dataclass(frozen=True)
class Track:
    title: str
    source_ref: str


@dataclass
class PlaybackSession:
    room_id: str
    voice_channel_id: str
    queue: deque[Track] = field(default_factory=deque)
    connection: Any = None
    state: PlaybackState = PlaybackState.CONNECTING
    volume: float = 0.5

    @property
    def current(self) -> Optional[Track]:
        return self.queue[0] if self.queue else None


@dataclass(frozen=True)
class EmojiPuzzle:
    prompt: str
    answer: str


@dataclass
class NumberGuessSession:
    secret: int
    initiator: str
    attempts: int = 0


@dataclass
class EmojiGuessSession:
    puzzle: EmojiPuzzle
    initiator: str


@dataclass
class InboundMessage:
    room_id: str
    author_id: str
    text: str
    author_name: str = ""
    voice_channel_id: Optional[str] = None
    # Platform-rendered mentions (``<@123>``) of the author and of users named in the text.
    author_mention: str = ""
    mentions: tuple[str, ...] = ()


@dataclass
class ParsedCommand:
    name: str
    args: list[str] = field(default_factory=list)

    @property
    def rest(self) -> str:
        return " ".join(self.args)


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass
class Embed:
    title: str
    description: str = ""
    color: int = 0x0099FF
    url: Optional[str] = None
    fields: list[EmbedField] = field(default_factory=list)
    footer: Optional[str] = None


@dataclass
class EnqueueResult:
    track: Track
    position: int
    started: bool


@dataclass
class AdvanceResult:
    finished: Optional[Track]
    next_track: Optional[Track] = None

    @property
    def drained(self) -> bool:
        return self.next_track is None


@dataclass
class GuessResult:
    kind: SessionKind
    outcome: str
    attempts: int = 0
    answer: Optional[str] = None

    @property
    def solved(self) -> bool:
        return self.outcome == "correct"
