from __future__ import annotations

import logging
import random
from functools import partial
from typing import Sequence

from .errors import AlreadyInProgressError, InvalidGuessFormatError, NoActiveGameError
from .normalize import parse_guess_number
from .registry import RoomSessionRegistry
from .types import EmojiGuessSession, EmojiPuzzle, GuessResult, NumberGuessSession, SessionKind

EMOJI_PUZZLES: tuple[EmojiPuzzle, ...] = (
    EmojiPuzzle("👨‍🏫📚", "Teacher"),
    EmojiPuzzle("🍎🍏", "Apple"),
    EmojiPuzzle("🍕🎉", "Pizza Party"),
    EmojiPuzzle("🚗💨", "Fast Car"),
    EmojiPuzzle("👻🎃", "Halloween"),
    EmojiPuzzle("👑🦁", "Lion King"),
    EmojiPuzzle("🌧️🌈", "Rainbow"),
    EmojiPuzzle("📚🐛", "Bookworm"),
    EmojiPuzzle("💡🧠", "Bright Idea"),
    EmojiPuzzle("🧊☕", "Iced Coffee"),
)


class GameManager:
    SECRET_MIN = 1
    SECRET_MAX = 100

    def __init__(
        self,
        registry: RoomSessionRegistry,
        *,
        rng: random.Random | None = None,
        puzzles: Sequence[EmojiPuzzle] = EMOJI_PUZZLES,
        logger: logging.Logger | None = None,
    ):
        if not puzzles:
            raise ValueError("at least one emoji puzzle is required")
        self._registry = registry
        self._rng = rng or random.Random()
        self._puzzles = tuple(puzzles)
        self._logger = logger or logging.getLogger(__name__)

    async def start(
        self,
        room_id: str,
        kind: SessionKind,
        initiator: str,
    ) -> NumberGuessSession | EmojiGuessSession:
        if kind is SessionKind.NUMBER_GUESS:
            factory = partial(self._new_number_game, initiator)
        elif kind is SessionKind.EMOJI_GUESS:
            factory = partial(self._new_emoji_game, initiator)
        else:
            raise ValueError(f"not a game kind: {kind!r}")

        async with self._registry.lock(room_id, kind):
            session, created = self._registry.create_if_absent(room_id, kind, factory)
        if not created:
            raise AlreadyInProgressError(room_id, kind)
        return session

    async def submit_guess(self, room_id: str, user_id: str, raw_guess: str) -> GuessResult:
        async with self._registry.lock(room_id, SessionKind.NUMBER_GUESS):
            number_game = self._registry.get(room_id, SessionKind.NUMBER_GUESS)
            if number_game is not None:
                return self._guess_number(room_id, user_id, number_game, raw_guess)

        async with self._registry.lock(room_id, SessionKind.EMOJI_GUESS):
            emoji_game = self._registry.get(room_id, SessionKind.EMOJI_GUESS)
            if emoji_game is not None:
                return self._guess_emoji(room_id, user_id, emoji_game, raw_guess)

        raise NoActiveGameError(room_id)

    async def stop(self, room_id: str, kind: SessionKind) -> NumberGuessSession | EmojiGuessSession:
        async with self._registry.lock(room_id, kind):
            session = self._registry.remove(room_id, kind)
        if session is None:
            raise NoActiveGameError(room_id, kind)
        return session

    def get(self, room_id: str, kind: SessionKind) -> NumberGuessSession | EmojiGuessSession | None:
        return self._registry.get(room_id, kind)

    def _new_number_game(self, initiator: str) -> NumberGuessSession:
        return NumberGuessSession(
            secret=self._rng.randint(self.SECRET_MIN, self.SECRET_MAX),
            initiator=initiator,
        )

    def _new_emoji_game(self, initiator: str) -> EmojiGuessSession:
        return EmojiGuessSession(puzzle=self._rng.choice(self._puzzles), initiator=initiator)

    def _guess_number(
        self,
        room_id: str,
        user_id: str,
        game: NumberGuessSession,
        raw_guess: str,
    ) -> GuessResult:
        guess = parse_guess_number(raw_guess)
        if guess is None:
            raise InvalidGuessFormatError(raw_guess)

        game.attempts += 1
        if guess < game.secret:
            return GuessResult(SessionKind.NUMBER_GUESS, "too_low", attempts=game.attempts)
        if guess > game.secret:
            return GuessResult(SessionKind.NUMBER_GUESS, "too_high", attempts=game.attempts)

        self._registry.remove(room_id, SessionKind.NUMBER_GUESS)
        self._logger.info(
            "Number game solved: room=%s user=%s attempts=%s",
            room_id,
            user_id,
            game.attempts,
        )
        return GuessResult(
            SessionKind.NUMBER_GUESS,
            "correct",
            attempts=game.attempts,
            answer=str(game.secret),
        )

    def _guess_emoji(
        self,
        room_id: str,
        user_id: str,
        game: EmojiGuessSession,
        raw_guess: str,
    ) -> GuessResult:
        if (raw_guess or "").lower() != game.puzzle.answer.lower():
            return GuessResult(SessionKind.EMOJI_GUESS, "incorrect")
        self._registry.remove(room_id, SessionKind.EMOJI_GUESS)
        self._logger.info("Emoji game solved: room=%s user=%s", room_id, user_id)
        return GuessResult(SessionKind.EMOJI_GUESS, "correct", answer=game.puzzle.answer)
