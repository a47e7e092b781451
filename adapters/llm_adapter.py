"""
Text-completion backends for the freshness oracle.

Two REST backends are supported: Google Gemini (``generateContent``) and Groq
(OpenAI compatible chat completions). ``CompletionService`` walks a fixed
list of (backend, model) candidates and returns the first usable answer.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import requests

from adapters.json_extraction import extract_json, has_keys

logger = logging.getLogger("wastenot.llm")

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1/models"
GROQ_CHAT_URL = "https://api.groq.com/openai/v1/chat/completions"


class CompletionError(Exception):
    """A completion request failed"""


class ModelUnavailableError(CompletionError):
    """The model does not exist or did not answer in time; try the next one"""


@dataclass(frozen=True)
class Completion:
    text: str
    model: str


@dataclass(frozen=True)
class JsonCompletion:
    data: Dict[str, Any]
    model: str


class CompletionBackend(ABC):
    """One provider able to complete a prompt with a named model"""

    name: str = "backend"

    def __init__(self, models: Sequence[str], timeout: float = 30.0):
        self.models = list(models)
        self.timeout = timeout

    @abstractmethod
    def complete(
        self, prompt: str, model: str, temperature: float, max_output_tokens: int
    ) -> str:
        """Return the raw reply text or raise CompletionError"""

    def _post(self, url: str, **kwargs) -> requests.Response:
        try:
            return requests.post(url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise ModelUnavailableError(f"{self.name} request timed out") from e
        except requests.RequestException as e:
            raise CompletionError(f"{self.name} request failed: {e}") from e

    def _check(self, response: requests.Response, model: str) -> Dict[str, Any]:
        if response.status_code == 404:
            raise ModelUnavailableError(f"Model {model} not found")
        try:
            data = response.json()
        except ValueError as e:
            raise CompletionError(
                f"Invalid JSON response from {self.name}: HTTP {response.status_code}"
            ) from e
        if not response.ok:
            error = data.get("error") if isinstance(data, dict) else None
            message = (
                error.get("message") or error.get("status")
                if isinstance(error, dict)
                else None
            )
            raise CompletionError(
                f"{self.name} API error: {message or f'HTTP {response.status_code}'}"
            )
        return data


class GeminiBackend(CompletionBackend):
    name = "gemini"

    def __init__(self, api_key: str, models: Sequence[str], timeout: float = 30.0):
        super().__init__(models, timeout)
        self.api_key = api_key

    def complete(self, prompt, model, temperature, max_output_tokens):
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }
        response = self._post(
            f"{GEMINI_BASE_URL}/{model}:generateContent",
            params={"key": self.api_key},
            json=body,
            headers={"Content-Type": "application/json"},
        )
        data = self._check(response, model)
        try:
            return data["candidates"][0]["content"]["parts"][0].get("text", "")
        except (KeyError, IndexError, TypeError) as e:
            raise CompletionError("Invalid response structure from Gemini API") from e


class GroqBackend(CompletionBackend):
    name = "groq"

    def __init__(self, api_key: str, models: Sequence[str], timeout: float = 15.0):
        super().__init__(models, timeout)
        self.api_key = api_key

    def complete(self, prompt, model, temperature, max_output_tokens):
        body = {
            "model": model,
            "messages": [
                {
                    "role": "system",
                    "content": "You are a food safety assistant. Reply with a single JSON object only.",
                },
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_output_tokens,
        }
        response = self._post(
            GROQ_CHAT_URL,
            json=body,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        data = self._check(response, model)
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise CompletionError("Invalid response structure from Groq API") from e


class CompletionService:
    """
    Tries every (backend, model) candidate in order.

    Any failure moves on to the next candidate; the last error is raised only
    when every candidate has failed.
    """

    def __init__(self, backends: Iterable[CompletionBackend]):
        self.backends = list(backends)

    def candidates(self) -> List[Tuple[CompletionBackend, str]]:
        return [(backend, model) for backend in self.backends for model in backend.models]

    def complete(
        self, prompt: str, temperature: float = 0.2, max_output_tokens: int = 512
    ) -> Completion:
        return self._run(prompt, temperature, max_output_tokens, parse=None)

    def complete_json(
        self,
        prompt: str,
        expected_keys: Sequence[str] = (),
        temperature: float = 0.2,
        max_output_tokens: int = 512,
    ) -> JsonCompletion:
        """Complete and parse a JSON object holding at least ``expected_keys``"""

        def parse(text: str) -> Dict[str, Any]:
            data = extract_json(text)
            if data is None:
                raise CompletionError("Failed to extract valid JSON from reply")
            if not has_keys(data, expected_keys):
                raise CompletionError(
                    f"JSON reply missing keys, expected: {', '.join(expected_keys)}"
                )
            return data

        return self._run(prompt, temperature, max_output_tokens, parse=parse)

    def _run(self, prompt, temperature, max_output_tokens, parse):
        candidates = self.candidates()
        if not candidates:
            raise CompletionError("No completion backend configured")

        last_error: Optional[CompletionError] = None
        for index, (backend, model) in enumerate(candidates, start=1):
            logger.debug(
                "Completion attempt %d/%d: %s/%s", index, len(candidates), backend.name, model
            )
            try:
                text = backend.complete(prompt, model, temperature, max_output_tokens)
                if parse is None:
                    return Completion(text=text, model=model)
                return JsonCompletion(data=parse(text), model=model)
            except ModelUnavailableError as e:
                logger.info("%s/%s unavailable: %s", backend.name, model, e)
                last_error = e
            except CompletionError as e:
                logger.warning("%s/%s failed: %s", backend.name, model, e)
                last_error = e

        logger.error("All completion candidates failed: %s", last_error)
        raise last_error


def build_completion_service(settings) -> Optional[CompletionService]:
    """Build the service from settings; None when no API key is configured"""
    backends: List[CompletionBackend] = []
    if settings.gemini_api_key:
        backends.append(
            GeminiBackend(
                settings.gemini_api_key,
                settings.gemini_models(),
                timeout=settings.llm_timeout_sec,
            )
        )
    if settings.groq_api_key:
        backends.append(
            GroqBackend(
                settings.groq_api_key,
                [settings.groq_model],
                timeout=min(settings.llm_timeout_sec, 15.0),
            )
        )
    if not backends:
        logger.info("No LLM API key configured, freshness uses the rule-based calculator")
        return None
    return CompletionService(backends)
