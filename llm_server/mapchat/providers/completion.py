# mapchat/providers/completion.py
# -*- coding: utf-8 -*-
"""
RealMap AI Chat Server — Completion Gateway
-------------------------------------------
This module is the ONLY place that knows how to talk to the completion
provider.

Responsibilities:
- Build the HTTP request (URL, headers, JSON payload) for the configured
  backend:
    * "openai" : any OpenAI-compatible /chat/completions endpoint
                 (OpenAI, OpenRouter, ...)
    * "ollama" : a local Ollama /api/chat endpoint
- Send the fixed decoding parameters (temperature / max tokens).
- Parse the response and return the assistant text.

One attempt per call. Every failure (transport, timeout, non-200, bad JSON,
no text in the response) is raised as ProviderError; retrying is up to the
caller. The text itself is returned untouched, even when it is empty.

The call is blocking (requests); the orchestrator runs it in the thread pool.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import requests

from mapchat.core.config import Settings
from mapchat.core.types import SessionTurn

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when the completion provider call fails."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def _preview(resp: requests.Response) -> str:
    return resp.text[:200].replace("\n", " ")


class CompletionGateway:
    """
    Sends a composed turn list to the provider and returns the reply text.

    Parameters
    ----------
    settings:
        Provider selection, endpoint, credentials, model and decoding
        parameters are all read from here.
    session:
        Optional requests.Session (connection reuse; tests pass a mock).
    """

    def __init__(
        self,
        settings: Settings,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self._http = session or requests.Session()

    @property
    def model(self) -> str:
        return self.settings.model_name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def complete(self, turns: Sequence[SessionTurn]) -> str:
        """
        Call the provider once and return the assistant's text as sent.

        Raises
        ------
        ProviderError
            If the provider is misconfigured or the HTTP/JSON exchange fails.
        """
        messages = [turn.to_message() for turn in turns]
        logger.debug(
            "Calling %s provider model=%s with %d message(s)",
            self.settings.provider,
            self.model,
            len(messages),
        )

        if self.settings.provider == "ollama":
            return self._call_ollama(messages)
        return self._call_openai(messages)

    # ------------------------------------------------------------------
    # Payloads
    # ------------------------------------------------------------------

    def build_openai_payload(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": messages,
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }

    def build_ollama_payload(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        # Ollama streams by default; stream=false gives a single JSON object.
        return {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": self.settings.temperature,
                "num_predict": self.settings.max_tokens,
            },
        }

    # ------------------------------------------------------------------
    # Backends
    # ------------------------------------------------------------------

    def _post(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Any:
        try:
            resp = self._http.post(
                url,
                headers=headers,
                json=payload,
                timeout=self.settings.provider_timeout_s,
            )
        except requests.Timeout as exc:
            raise ProviderError(
                f"Provider timed out after {self.settings.provider_timeout_s:g} s"
            ) from exc
        except requests.RequestException as exc:
            raise ProviderError(f"Provider HTTP error: {exc}") from exc

        if resp.status_code != 200:
            raise ProviderError(
                f"Provider HTTP {resp.status_code}: {_preview(resp)}",
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise ProviderError("Provider returned non-JSON response.") from exc

    def _call_openai(self, messages: List[Dict[str, str]]) -> str:
        api_key = self.settings.provider_api_key
        if not api_key:
            raise ProviderError(
                "Provider API key is missing. Set PROVIDER_API_KEY or OPENAI_API_KEY."
            )

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        data = self._post(
            self.settings.provider_base_url,
            self.build_openai_payload(messages),
            headers,
        )

        try:
            # choices[0].message.content
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(
                "Provider response JSON missing choices[0].message.content"
            ) from exc

        return self._check_content(content)

    def _call_ollama(self, messages: List[Dict[str, str]]) -> str:
        data = self._post(
            self.settings.ollama_url,
            self.build_ollama_payload(messages),
            {"Content-Type": "application/json"},
        )

        # {"model": "...", "message": {"role": "assistant", "content": "..."}, "done": true}
        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        return self._check_content(content)

    @staticmethod
    def _check_content(content: Any) -> str:
        if not isinstance(content, str):
            raise ProviderError("Provider response has no message content.")
        return content
