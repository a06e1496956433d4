from __future__ import annotations

from room_session_engine.providers.http import GeminiCompletionProvider, YouTubeSearchResolver


def test_gemini_extract_text_reads_first_candidate():
    payload = {"candidates": [{"content": {"parts": [{"text": "Hello!"}]}}]}
    assert GeminiCompletionProvider.extract_text(payload) == "Hello!"


def test_gemini_extract_text_tolerates_odd_shapes():
    assert GeminiCompletionProvider.extract_text(None) is None
    assert GeminiCompletionProvider.extract_text({"candidates": []}) is None
    assert GeminiCompletionProvider.extract_text({"candidates": [{"content": {"parts": []}}]}) is None
    assert GeminiCompletionProvider.extract_text({"candidates": [{"content": {"parts": [{"text": 5}]}}]}) is None


def test_youtube_video_id_from_url():
    assert YouTubeSearchResolver.video_id_from_url("https://www.youtube.com/watch?v=dQw4w9WgXcQ") == "dQw4w9WgXcQ"
    assert YouTubeSearchResolver.video_id_from_url("youtu.be/dQw4w9WgXcQ") == "dQw4w9WgXcQ"
    assert YouTubeSearchResolver.video_id_from_url("never gonna give you up") is None


def test_resolver_returns_none_for_blank_query():
    resolver = YouTubeSearchResolver(timeout=0.1)
    assert resolver._resolve_sync("   ") is None
