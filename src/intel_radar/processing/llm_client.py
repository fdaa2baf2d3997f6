from __future__ import annotations

import logging
import os
from typing import Any, Callable, Protocol

import requests

from intel_radar.core.config import (
    GEMINI_API_BASE,
    GEMINI_MODEL,
    OPENAI_API_BASE,
    OPENAI_MODEL,
    PROVIDER_TIMEOUT_SEC,
)
from intel_radar.processing.types import Failure, ProviderResult, Success

logger = logging.getLogger(__name__)

_AI_UNAVAILABLE_LOGGED: set[str] = set()

HttpPost = Callable[..., requests.Response]


def log_ai_unavailable(reason: str) -> None:
    # AI 비활성 사유를 중복 없이 로그 출력
    if reason in _AI_UNAVAILABLE_LOGGED:
        return
    logger.warning("⚠️ AI 비활성: %s", reason)
    _AI_UNAVAILABLE_LOGGED.add(reason)


class TextProvider(Protocol):
    provider_id: str

    def generate(self, prompt: str, max_tokens: int, temperature: float) -> ProviderResult:
        ...


def _extract_gemini_text(payload: dict[str, Any]) -> str:
    # Gemini REST 응답에서 텍스트만 추출
    try:
        return payload["candidates"][0]["content"]["parts"][0]["text"].strip()
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""


def _extract_openai_text(payload: dict[str, Any]) -> str:
    try:
        return (payload["choices"][0]["message"]["content"] or "").strip()
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""


class _RestProvider:
    provider_id = ""
    api_key_env = ""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        timeout_sec: float = PROVIDER_TIMEOUT_SEC,
        http_post: HttpPost = requests.post,
    ) -> None:
        self._api_key = api_key
        self._timeout_sec = timeout_sec
        self._http_post = http_post

    def _resolve_api_key(self) -> str:
        if self._api_key is not None:
            return self._api_key.strip()
        return os.getenv(self.api_key_env, "").strip()

    def _fail(self, detail: str) -> Failure:
        return Failure(f"{self.provider_id} error: {detail}")

    def _request(self, api_key: str, prompt: str, max_tokens: int, temperature: float) -> requests.Response:
        raise NotImplementedError

    def _extract(self, payload: dict[str, Any]) -> str:
        raise NotImplementedError

    def generate(self, prompt: str, max_tokens: int = 300, temperature: float = 0.6) -> ProviderResult:
        api_key = self._resolve_api_key()
        if not api_key:
            log_ai_unavailable(f"{self.api_key_env} 미설정")
            return self._fail(f"{self.api_key_env} missing")
        try:
            resp = self._request(api_key, prompt, max_tokens, temperature)
        except requests.RequestException as exc:
            logger.error("%s request failed: %s", self.provider_id, exc)
            return self._fail(f"{type(exc).__name__}: {exc}")

        if not resp.ok:
            logger.error("%s error: %s %s", self.provider_id, resp.status_code, resp.text[:200])
            return self._fail(f"{resp.status_code} {resp.reason}")

        try:
            data = resp.json()
        except ValueError:
            return self._fail("response is not JSON")

        text = self._extract(data)
        if not text:
            return self._fail("empty response")
        return Success(text)


class GeminiClient(_RestProvider):
    provider_id = "gemini"
    api_key_env = "GEMINI_API_KEY"

    def __init__(self, *, model: str = GEMINI_MODEL, api_base: str = GEMINI_API_BASE, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._model = model
        self._api_base = api_base

    def _request(self, api_key: str, prompt: str, max_tokens: int, temperature: float) -> requests.Response:
        return self._http_post(
            f"{self._api_base}/models/{self._model}:generateContent",
            headers={"x-goog-api-key": api_key, "Content-Type": "application/json"},
            json={
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {
                    "maxOutputTokens": max_tokens,
                    "temperature": temperature,
                },
            },
            timeout=self._timeout_sec,
        )

    def _extract(self, payload: dict[str, Any]) -> str:
        return _extract_gemini_text(payload)


class OpenAIClient(_RestProvider):
    provider_id = "openai"
    api_key_env = "OPENAI_API_KEY"

    def __init__(self, *, model: str = OPENAI_MODEL, api_base: str = OPENAI_API_BASE, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._model = model
        self._api_base = api_base

    def _request(self, api_key: str, prompt: str, max_tokens: int, temperature: float) -> requests.Response:
        return self._http_post(
            f"{self._api_base}/chat/completions",
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            json={
                "model": self._model,
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": max_tokens,
                "temperature": temperature,
            },
            timeout=self._timeout_sec,
        )

    def _extract(self, payload: dict[str, Any]) -> str:
        return _extract_openai_text(payload)
