"""Chat-completions client for the local model that writes report enrichment.

Only local OpenAI-compatible runners (Docker Model Runner, Ollama, llama.cpp
server) are accepted: analysed source never leaves the machine.
"""

from __future__ import annotations

import ipaddress
import json
import os
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from ..config import LLMConfig
from ..logging import get_logger

_AUTO = object()

LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "0.0.0.0", "::1", "model-runner.docker.internal"})


class _Message(Protocol):
    role: str
    content: str


@dataclass(frozen=True)
class LLMRequest:
    """One chat-completions call as handed to the transport."""

    messages: List[Dict[str, str]]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    json_mode: bool
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]

    @property
    def system(self) -> Optional[str]:
        return next((m["content"] for m in self.messages if m["role"] == "system"), None)

    @property
    def prompt(self) -> str:
        return "\n\n".join(m["content"] for m in self.messages if m["role"] == "user")


Transport = Callable[[LLMRequest], str]


class LLMRunner:
    """Sends enrichment prompts to a local model and returns the reply text."""

    DEFAULT_MODEL = "ai/smollm2:360M-Q4_K_M"
    DEFAULT_BASE_URL = "http://localhost:12434/engines/v1"
    # Enrichment replies are one JSON document with a description per file.
    DEFAULT_TEMPERATURE = 0.1
    DEFAULT_MAX_TOKENS = 4000
    DEFAULT_TIMEOUT = 30.0
    ENV_PREFIXES = ("STACKMAP_LLM_", "MODEL_RUNNER_")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None | object = _AUTO,
        api_key: str | None | object = _AUTO,
        temperature: Optional[float] = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = DEFAULT_MAX_TOKENS,
        request_timeout: Optional[float] = DEFAULT_TIMEOUT,
        transport: Transport | None = None,
    ) -> None:
        self.model = model or _env("MODEL") or self.DEFAULT_MODEL
        if base_url is _AUTO:
            base_url = _env("BASE_URL") or self.DEFAULT_BASE_URL
        self.base_url = ensure_local_url(str(base_url)) if base_url is not None else None
        self.api_key = _env("API_KEY") if api_key is _AUTO else api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout
        self._transport = transport or _http_transport

    @classmethod
    def from_config(cls, config: LLMConfig, **overrides: object) -> "LLMRunner":
        """Build a runner from the `llm` block of .stackmap.yml."""
        kwargs: Dict[str, object] = {"model": config.model}
        for name, value in (
            ("base_url", config.base_url),
            ("api_key", config.api_key),
            ("temperature", config.temperature),
            ("max_tokens", config.max_tokens),
            ("request_timeout", config.request_timeout),
        ):
            if value is not None:
                kwargs[name] = value
        kwargs.update(overrides)
        return cls(**kwargs)  # type: ignore[arg-type]

    def chat(self, messages: Iterable[_Message], *, json_mode: bool = False) -> str:
        """Send `messages` (role/content pairs) and return the reply text."""
        request = LLMRequest(
            messages=[{"role": message.role, "content": message.content} for message in messages],
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            json_mode=json_mode,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
        )
        return self._transport(request)

    def run(self, prompt: str, *, system: str | None = None, json_mode: bool = False) -> str:
        messages = [_Text("system", system)] if system else []
        messages.append(_Text("user", prompt))
        return self.chat(messages, json_mode=json_mode)


@dataclass(frozen=True)
class _Text:
    role: str
    content: str


def _http_transport(request: LLMRequest) -> str:
    if not request.base_url:
        raise RuntimeError("LLM runner has no base_url configured")

    payload: Dict[str, object] = {"model": request.model, "messages": request.messages}
    if request.temperature is not None:
        payload["temperature"] = request.temperature
    if request.max_tokens is not None:
        payload["max_tokens"] = request.max_tokens
    if request.json_mode:
        payload["response_format"] = {"type": "json_object"}

    headers = {"Content-Type": "application/json"}
    if request.api_key:
        headers["Authorization"] = f"Bearer {request.api_key}"

    endpoint = f"{request.base_url}/chat/completions"
    get_logger("llm").debug("POST %s (model %s, json_mode=%s)", endpoint, request.model, request.json_mode)
    response = _post_json(endpoint, payload, headers, request.request_timeout or LLMRunner.DEFAULT_TIMEOUT)

    content = _completion_text(response)
    if not content:
        raise RuntimeError("LLM runner returned an empty response")
    return content.strip()


def _post_json(endpoint: str, payload: Dict[str, object], headers: Dict[str, str], timeout: float) -> Dict[str, object]:
    http_request = Request(endpoint, data=json.dumps(payload).encode("utf-8"), headers=headers, method="POST")
    try:
        with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
            raw = response.read()
    except HTTPError as exc:  # pragma: no cover - depends on runtime
        detail = exc.read().decode("utf-8", errors="ignore").strip()
        raise RuntimeError(f"LLM runner failed with status {exc.code}: {detail or exc.reason}") from exc
    except URLError as exc:  # pragma: no cover - depends on runtime
        raise RuntimeError(f"LLM runner unreachable at {endpoint}: {exc.reason}") from exc
    except TimeoutError as exc:  # pragma: no cover - depends on runtime
        raise RuntimeError(f"LLM runner timed out after {timeout:g}s") from exc

    try:
        decoded = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RuntimeError("LLM runner returned invalid JSON") from exc
    if not isinstance(decoded, dict):
        raise RuntimeError("LLM runner returned an unexpected payload")
    return decoded


def _completion_text(payload: Dict[str, object]) -> str:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    first = choices[0]
    message = first.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    text = first.get("text")
    return text if isinstance(text, str) else ""


def _env(suffix: str) -> Optional[str]:
    for prefix in LLMRunner.ENV_PREFIXES:
        value = os.getenv(f"{prefix}{suffix}")
        if value:
            return value
    return None


def is_local_host(host: str) -> bool:
    lowered = host.lower()
    if lowered in LOCAL_HOSTS or lowered.endswith((".local", ".localdomain")):
        return True
    try:
        return ipaddress.ip_address(lowered).is_loopback
    except ValueError:
        return False


def ensure_local_url(url: str) -> str:
    """Normalise `url`, refusing hosts other than this machine."""
    normalized = url.rstrip("/")
    host = urlparse(normalized).hostname
    if host is not None and not is_local_host(host):
        raise RuntimeError(f"Remote base_url '{url}' is not permitted. Configure a local model runner.")
    return normalized


__all__ = ["LLMRequest", "LLMRunner", "Transport", "ensure_local_url", "is_local_host"]
