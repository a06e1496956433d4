from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from . import fun
from .dispatcher import RoomDispatcher
from .errors import (
    MediaNotFoundError,
    NoVoiceChannelError,
    ProviderUnavailableError,
    SessionError,
    UsageError,
)
from .games import GameManager
from .normalize import parse_command, parse_volume_percent, trim_text
from .playback import PlaybackManager
from .ports import AudioTransportPort, JokePort, MediaResolverPort, ResponderPort, TextCompletionPort
from .registry import RoomSessionRegistry
from .types import Embed, InboundMessage, ParsedCommand, SessionKind

T = TypeVar("T")
CommandHandler = Callable[[InboundMessage, ParsedCommand], Awaitable[None]]


@dataclass(frozen=True)
class EngineConfig:
    command_prefix: str = "!"
    chat_min_length: int = 5
    provider_timeout_seconds: float = 15.0
    default_volume: float = 0.5
    bot_name: str = "RoomBot"
    max_reply_chars: int = 2000


class SessionEngine:
    """Single-message boundary: parse, route, reply.

    Every ``SessionError`` raised while handling one message becomes that
    message's reply; anything else is logged and answered with a generic
    apology. Nothing escapes ``on_message``.
    """

    GENERIC_APOLOGY = "Sorry, something went wrong on my side. Please try again later."
    CHAT_APOLOGY = "Oops! My brain is taking a nap. Try again later!"
    ASKAI_APOLOGY = "Oops! There was an error communicating with the AI. Please try again later."
    JOKE_APOLOGY = "Could not fetch a joke right now. The joke API might be busy!"

    def __init__(
        self,
        responder: ResponderPort,
        transport: AudioTransportPort,
        *,
        resolver: MediaResolverPort | None = None,
        completion: TextCompletionPort | None = None,
        jokes: JokePort | None = None,
        config: EngineConfig | None = None,
        registry: RoomSessionRegistry | None = None,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ):
        self._config = config or EngineConfig()
        self._responder = responder
        self._resolver = resolver
        self._completion = completion
        self._jokes = jokes
        self._rng = rng or random.Random()
        self._logger = logger or logging.getLogger(__name__)
        self.registry = registry or RoomSessionRegistry()
        self.playback = PlaybackManager(
            self.registry,
            transport,
            responder,
            default_volume=self._config.default_volume,
        )
        self.games = GameManager(self.registry, rng=self._rng)
        self.dispatcher = RoomDispatcher()
        self._commands: dict[str, CommandHandler] = {
            "ping": self._cmd_ping,
            "hello": self._cmd_hello,
            "help": self._cmd_help,
            "rules": self._cmd_rules,
            "dice": self._cmd_dice,
            "roll": self._cmd_roll,
            "rps": self._cmd_rps,
            "coinflip": self._cmd_coinflip,
            "8ball": self._cmd_eight_ball,
            "choose": self._cmd_choose,
            "reverse": self._cmd_reverse,
            "fact": self._cmd_fact,
            "wouldyourather": self._cmd_would_you_rather,
            "insult": self._cmd_insult,
            "embed": self._cmd_embed,
            "joke": self._cmd_joke,
            "askai": self._cmd_askai,
            "play": self._cmd_play,
            "skip": self._cmd_skip,
            "stop": self._cmd_stop,
            "queue": self._cmd_queue,
            "volume": self._cmd_volume,
            "startguess": self._cmd_start_number_game,
            "emojiguess": self._cmd_start_emoji_game,
            "guess": self._cmd_guess,
            "stopguess": self._cmd_stop_number_game,
            "stopemojiguess": self._cmd_stop_emoji_game,
        }

    @property
    def config(self) -> EngineConfig:
        return self._config

    def commands(self) -> list[str]:
        return sorted(self._commands)

    def dispatch(self, message: InboundMessage) -> None:
        """Queue ``message`` behind earlier messages from the same room."""
        self.dispatcher.submit(message.room_id, lambda: self.on_message(message))

    async def on_message(self, message: InboundMessage) -> None:
        command = parse_command(message.text, self._config.command_prefix)
        try:
            if command is None:
                await self._chat(message)
                return
            handler = self._commands.get(command.name)
            if handler is None:
                return
            await handler(message, command)
        except SessionError as exc:
            self._logger.debug(
                "Command rejected: room=%s command=%s error=%s",
                message.room_id,
                command.name if command else "<chat>",
                type(exc).__name__,
            )
            await self._reply(message.room_id, exc.notice)
        except Exception:
            self._logger.exception(
                "Message handling failed: room=%s author=%s text=%r",
                message.room_id,
                message.author_id,
                message.text,
            )
            await self._reply(message.room_id, self.GENERIC_APOLOGY)

    # ------------------------------------------------------------------
    # Provider helpers
    # ------------------------------------------------------------------

    async def _await_provider(self, provider: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._config.provider_timeout_seconds)
        except asyncio.TimeoutError as exc:
            self._logger.warning("Provider timed out: provider=%s", provider)
            raise ProviderUnavailableError(provider, "timeout") from exc
        except SessionError:
            raise
        except Exception as exc:
            self._logger.warning("Provider failed: provider=%s error=%s", provider, exc)
            raise ProviderUnavailableError(provider, str(exc)) from exc

    async def _provider_text(self, provider: str, awaitable: Awaitable[str | None]) -> str:
        text = ((await self._await_provider(provider, awaitable)) or "").strip()
        if not text:
            raise ProviderUnavailableError(provider, "empty_response")
        return text

    async def _with_placeholder(
        self,
        room_id: str,
        placeholder: str,
        produce: Callable[[], Awaitable[str]],
        apology: str,
    ) -> None:
        handle = await self._responder.send(room_id, placeholder)
        try:
            text = await produce()
        except ProviderUnavailableError as exc:
            self._logger.warning(
                "Placeholder reply failed: room=%s provider=%s reason=%s",
                room_id,
                exc.provider,
                exc.reason,
            )
            text = apology
        await self._responder.edit(handle, trim_text(text, self._config.max_reply_chars))

    # ------------------------------------------------------------------
    # Chat / providers
    # ------------------------------------------------------------------

    async def _chat(self, message: InboundMessage) -> None:
        if len(message.text) < self._config.chat_min_length:
            return
        if self._completion is None:
            return
        completion = self._completion

        async def produce() -> str:
            return await self._provider_text("completion", completion.complete(message.text))

        await self._with_placeholder(message.room_id, "💬 Thinking...", produce, self.CHAT_APOLOGY)

    async def _cmd_askai(self, message: InboundMessage, command: ParsedCommand) -> None:
        prompt = command.rest
        if not prompt:
            raise UsageError("Please provide a question for the AI (e.g., `!askai What is the capital of France?`).")

        async def produce() -> str:
            if self._completion is None:
                raise ProviderUnavailableError("completion", "not_configured")
            answer = await self._provider_text("completion", self._completion.complete(prompt))
            return f'**Your question:** "{prompt}"\n\n**AI\'s response:**\n{answer}'

        await self._with_placeholder(message.room_id, "🧠 AI is thinking...", produce, self.ASKAI_APOLOGY)

    async def _cmd_joke(self, message: InboundMessage, command: ParsedCommand) -> None:
        async def produce() -> str:
            if self._jokes is None:
                raise ProviderUnavailableError("jokes", "not_configured")
            joke = await self._provider_text("jokes", self._jokes.fetch_joke())
            return f"😂 Here's a joke: {joke}"

        await self._with_placeholder(message.room_id, "Fetching a joke for you...", produce, self.JOKE_APOLOGY)

    # ------------------------------------------------------------------
    # Music
    # ------------------------------------------------------------------

    async def _cmd_play(self, message: InboundMessage, command: ParsedCommand) -> None:
        if not message.voice_channel_id:
            raise NoVoiceChannelError()
        query = command.rest
        if not query:
            raise UsageError("Please provide a YouTube URL or a song title to search for.")
        if self._resolver is None:
            raise ProviderUnavailableError("resolver", "not_configured")

        track = await self._await_provider("resolver", self._resolver.resolve(query))
        if track is None:
            raise MediaNotFoundError(query)

        result = await self.playback.enqueue(message.room_id, track, message.voice_channel_id)
        if not result.started:
            await self._reply(
                message.room_id,
                f"🎶 **{track.title}** has been added to the queue! (position {result.position})",
            )

    async def _cmd_skip(self, message: InboundMessage, command: ParsedCommand) -> None:
        if not message.voice_channel_id:
            raise NoVoiceChannelError("You must be in a voice channel to skip music!")
        await self.playback.skip(message.room_id)
        await self._reply(message.room_id, "⏭️ Skipped the current song.")

    async def _cmd_stop(self, message: InboundMessage, command: ParsedCommand) -> None:
        if not message.voice_channel_id:
            raise NoVoiceChannelError("You must be in a voice channel to stop music!")
        await self.playback.stop(message.room_id)
        await self._reply(message.room_id, "⏹️ Stopped the music and left the voice channel.")

    async def _cmd_queue(self, message: InboundMessage, command: ParsedCommand) -> None:
        entries = self.playback.list_queue(message.room_id)
        if not entries:
            await self._reply(message.room_id, "The music queue is empty.")
            return
        lines = "\n".join(f"{position}. {track.title}" for position, track in entries)
        await self._reply(message.room_id, f"**Current Music Queue:**\n{lines}")

    async def _cmd_volume(self, message: InboundMessage, command: ParsedCommand) -> None:
        volume = parse_volume_percent(command.args[0]) if command.args else None
        if volume is None:
            raise UsageError("Please give a volume in percent (e.g., `!volume 50`).")
        applied = await self.playback.set_volume(message.room_id, volume)
        await self._reply(message.room_id, f"🔊 Volume set to {round(applied * 100)}%.")

    # ------------------------------------------------------------------
    # Games
    # ------------------------------------------------------------------

    async def _cmd_start_number_game(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self.games.start(message.room_id, SessionKind.NUMBER_GUESS, message.author_id)
        await self._reply(
            message.room_id,
            "🔢 I've picked a number between 1 and 100. Try to guess it with `!guess [your number]`!",
        )

    async def _cmd_start_emoji_game(self, message: InboundMessage, command: ParsedCommand) -> None:
        game = await self.games.start(message.room_id, SessionKind.EMOJI_GUESS, message.author_id)
        await self._reply(
            message.room_id,
            "🤔 **Emoji Guessing Game!**\n"
            f"Guess what these emojis represent:\n{game.puzzle.prompt}\n\n"
            "Use `!guess [your answer]` to submit your guess.",
        )

    async def _cmd_guess(self, message: InboundMessage, command: ParsedCommand) -> None:
        result = await self.games.submit_guess(message.room_id, message.author_id, command.rest)
        name = message.author_name or message.author_id
        if result.kind is SessionKind.NUMBER_GUESS:
            if result.outcome == "too_low":
                text = f"⬆️ Too low! Try a higher number. (Attempt: {result.attempts})"
            elif result.outcome == "too_high":
                text = f"⬇️ Too high! Try a lower number. (Attempt: {result.attempts})"
            else:
                text = (
                    f"🎉 Congratulations, {name}! You guessed the number **{result.answer}** "
                    f"in **{result.attempts}** attempts!"
                )
        elif result.solved:
            text = f"🎉 Correct, {name}! The answer was **{result.answer}**!"
        else:
            text = "❌ Not quite! Try again."
        await self._reply(message.room_id, text)

    async def _cmd_stop_number_game(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self.games.stop(message.room_id, SessionKind.NUMBER_GUESS)
        await self._reply(message.room_id, '✋ The "Guess the Number" game has been stopped.')

    async def _cmd_stop_emoji_game(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self.games.stop(message.room_id, SessionKind.EMOJI_GUESS)
        await self._reply(message.room_id, "✋ The Emoji Guessing game has been stopped.")

    # ------------------------------------------------------------------
    # Stateless replies
    # ------------------------------------------------------------------

    async def _cmd_ping(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, "Pong!")

    async def _cmd_hello(self, message: InboundMessage, command: ParsedCommand) -> None:
        name = message.author_name or message.author_id
        await self._reply(message.room_id, f"Hello there, {name}! How can I help you today?")

    async def _cmd_help(self, message: InboundMessage, command: ParsedCommand) -> None:
        prefix = self._config.command_prefix
        listing = ", ".join(f"`{prefix}{name}`" for name in self.commands())
        await self._reply(message.room_id, f"**Commands:** {listing}")

    async def _cmd_rules(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, fun.RULES_TEXT)

    async def _cmd_dice(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, fun.roll_die(command.args, self._rng))

    async def _cmd_roll(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, fun.roll_dice_notation(command.args, self._rng))

    async def _cmd_rps(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, fun.rock_paper_scissors(command.args, self._rng))

    async def _cmd_coinflip(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, fun.coin_flip(self._rng))

    async def _cmd_eight_ball(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, fun.magic_eight_ball(command.rest, self._rng))

    async def _cmd_choose(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, fun.choose(command.rest, self._rng))

    async def _cmd_reverse(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, fun.reverse_text(command.rest))

    async def _cmd_fact(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, fun.random_fact(self._rng))

    async def _cmd_would_you_rather(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, fun.would_you_rather(self._rng))

    async def _cmd_insult(self, message: InboundMessage, command: ParsedCommand) -> None:
        if message.mentions:
            target = message.mentions[0]
        else:
            target = message.author_mention or message.author_name or message.author_id
        await self._reply(message.room_id, fun.insult(target, self._rng))

    async def _cmd_embed(self, message: InboundMessage, command: ParsedCommand) -> None:
        await self._reply(message.room_id, fun.info_embed(self._config.bot_name))

    async def _reply(self, room_id: str, content: str | Embed) -> Any:
        try:
            return await self._responder.send(room_id, content)
        except Exception:
            self._logger.warning("Failed to send reply to room %s", room_id, exc_info=True)
            return None
