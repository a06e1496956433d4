from __future__ import annotations

import logging
import sys

from .config import AgentSettings
from .core.engine import SessionEngine
from .discord_bot import DiscordAudioTransport, DiscordResponder, SessionBot
from .providers import DadJokeProvider, GeminiCompletionProvider, YouTubeSearchResolver

logger = logging.getLogger("room_session_engine")


def build_bot(settings: AgentSettings) -> SessionBot:
    completion = None
    if settings.google_api_key:
        completion = GeminiCompletionProvider(
            settings.google_api_key,
            model=settings.gemini_model,
            timeout=settings.provider_timeout_seconds,
        )
    else:
        logger.warning("GOOGLE_API_KEY is not set; AI chat and !askai are disabled.")

    def _build_engine(responder: DiscordResponder, transport: DiscordAudioTransport) -> SessionEngine:
        return SessionEngine(
            responder,
            transport,
            resolver=YouTubeSearchResolver(timeout=settings.provider_timeout_seconds),
            completion=completion,
            jokes=DadJokeProvider(timeout=settings.provider_timeout_seconds),
            config=settings.engine_config(),
        )

    return SessionBot(_build_engine, ffmpeg_executable=settings.ffmpeg_executable)


def main() -> int:
    settings = AgentSettings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.discord_bot_token:
        logger.error("DISCORD_BOT_TOKEN is not set.")
        return 2
    bot = build_bot(settings)
    bot.run(settings.discord_bot_token, log_handler=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
