from .http import DadJokeProvider, GeminiCompletionProvider, YouTubeSearchResolver

__all__ = [
    "DadJokeProvider",
    "GeminiCompletionProvider",
    "YouTubeSearchResolver",
]
