from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests

from ..exceptions import NarrativeError
from .settings import NarrativeSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class GeminiClient:
    """Minimal client for the ``generateContent`` REST endpoint.

    Usage:
        client = GeminiClient(NarrativeSettings(api_key="..."))
        text = client.generate("Describe a damp cellar in one sentence.")
    """

    def __init__(self, settings: NarrativeSettings, session: Optional[requests.Session] = None) -> None:
        if not settings.has_key:
            raise ValueError("An API key is required")
        self.settings = settings
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "x-goog-api-key": settings.api_key or "",
                "Content-Type": "application/json",
                "User-Agent": "pixel-sprout/0.1",
            }
        )

    @property
    def endpoint(self) -> str:
        return f"{self.settings.api_base.rstrip('/')}/models/{self.settings.model}:generateContent"

    def _post(self, payload: Dict[str, Any]) -> requests.Response:
        attempts = self.settings.max_retries + 1
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                resp = self._session.post(self.endpoint, json=payload, timeout=self.settings.timeout)
            except requests.RequestException as exc:
                last_error = exc
                logger.warning("Narrative request failed (attempt %d/%d): %s", attempt, attempts, exc)
            else:
                if resp.status_code not in RETRYABLE_STATUS or attempt == attempts:
                    return resp
                logger.warning("Narrative service returned %d (attempt %d/%d)", resp.status_code, attempt, attempts)
            if attempt < attempts and self.settings.retry_delay:
                time.sleep(self.settings.retry_delay * attempt)
        raise NarrativeError(f"Narrative service unreachable: {last_error}")

    def generate(self, prompt: str) -> str:
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        resp = self._post(payload)
        if not 200 <= resp.status_code < 300:
            try:
                detail: Any = resp.json()
            except ValueError:
                detail = resp.text
            raise NarrativeError(f"generateContent failed: {resp.status_code} {detail}", status_code=resp.status_code)
        try:
            data = resp.json()
            parts = data["candidates"][0]["content"]["parts"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise NarrativeError(f"Unexpected generateContent response: {exc}") from exc
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict)).strip()
        logger.debug("Narrative reply: %d chars", len(text))
        return text

    def close(self) -> None:
        self._session.close()
