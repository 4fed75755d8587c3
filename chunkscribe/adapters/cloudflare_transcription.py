from __future__ import annotations

import logging
from typing import Any

import requests

from chunkscribe.adapters.transcription import TranscriptionBackend
from chunkscribe.contracts.errors import ProviderError, ProviderHTTPError, ProviderResponseError


logger = logging.getLogger(__name__)

CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"
WHISPER_MODEL_PATH = "@cf/openai/whisper"


class CloudflareWhisperAdapter(TranscriptionBackend):
    """Workers AI Whisper over plain HTTPS, one POST of raw bytes per call."""

    def __init__(
        self,
        account_id: str,
        api_token: str,
        *,
        language: str | None = None,
        timeout_s: float = 300.0,
        session: requests.Session | None = None,
        api_base: str = CLOUDFLARE_API_BASE,
    ) -> None:
        if not account_id:
            raise ValueError("account_id is required")
        if not api_token:
            raise ValueError("api_token is required")
        self._account_id = account_id
        self._api_token = api_token
        self._language = language
        self._timeout_s = timeout_s
        # chunks post concurrently; a shared requests.Session is not thread-safe
        self._post = session.post if session is not None else requests.post
        self._api_base = api_base.rstrip("/")

    @property
    def url(self) -> str:
        return f"{self._api_base}/accounts/{self._account_id}/ai/run/{WHISPER_MODEL_PATH}"

    def transcribe(self, audio: bytes, *, filename: str) -> str:
        params = {"language": self._language} if self._language else None
        headers = {
            "Authorization": f"Bearer {self._api_token}",
            "Content-Type": "application/octet-stream",
        }
        logger.debug("POST %s (%s, %d bytes)", self.url, filename, len(audio))
        try:
            response = self._post(
                self.url,
                params=params,
                headers=headers,
                data=audio,
                timeout=self._timeout_s,
            )
        except requests.RequestException as exc:
            raise ProviderError(f"Cloudflare request failed for {filename}: {exc}") from exc

        if not response.ok:
            raise ProviderHTTPError(response.status_code, response.reason or "", response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderResponseError(f"Cloudflare returned non-JSON body for {filename}") from exc
        return _extract_text(payload)


def _extract_text(payload: Any) -> str:
    result = payload.get("result") if isinstance(payload, dict) else None
    text = result.get("text") if isinstance(result, dict) else None
    if not isinstance(text, str):
        raise ProviderResponseError("Cloudflare response missing result.text")
    return text


__all__ = ["CLOUDFLARE_API_BASE", "CloudflareWhisperAdapter"]
