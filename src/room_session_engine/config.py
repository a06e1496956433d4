from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.engine import EngineConfig


class AgentSettings(BaseSettings):
    discord_bot_token: str = ""
    google_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    bot_name: str = "RoomBot"
    command_prefix: str = "!"
    chat_min_length: int = 5
    provider_timeout_seconds: float = 15.0
    default_volume: float = 0.5
    # Path to the ffmpeg binary used for voice playback; PATH lookup when unset.
    ffmpeg_executable: Optional[str] = None
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
    )

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            command_prefix=self.command_prefix,
            chat_min_length=self.chat_min_length,
            provider_timeout_seconds=self.provider_timeout_seconds,
            default_volume=self.default_volume,
            bot_name=self.bot_name,
        )
