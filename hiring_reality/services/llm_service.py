"""Provider backends for text generation.

Supports multiple backends: Gemini, Groq, OpenAI.
Uses langchain-core for unified interface. The gateway only sees the
``LLMBackend`` protocol, so tests swap in fakes without touching langchain.
"""

import logging
import re
import time
from typing import Any, Dict, Optional, Protocol, Tuple

from langchain_core.exceptions import OutputParserException
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.output_parsers import JsonOutputParser
from pydantic import BaseModel, Field

from ..models.config import AppConfig, ProviderConfig

logger = logging.getLogger(__name__)


class CompletionRequest(BaseModel):
    """One prompt plus its generation constraints."""
    prompt: str
    system_prompt: Optional[str] = None
    max_tokens: Optional[int] = Field(default=None, ge=1)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    json_mode: bool = False


class CompletionResponse(BaseModel):
    """Normalized provider response."""
    content: str
    tokens_used: int = 0
    provider: str
    model: str = ""
    duration_ms: int = 0


class LLMBackend(Protocol):
    """Protocol every provider backend implements."""

    name: str

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Run one completion; raise on any transport or API failure."""
        ...


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        # Some providers return content blocks instead of a plain string
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content or "")


class LangChainBackend:
    """Backend built on a langchain chat model.

    Chat models are created lazily, one per (temperature, max_tokens,
    json_mode) combination, since those are constructor settings.

    Usage:
        backend = LangChainBackend("groq", config.groq, model="llama-3.3-70b-versatile")
        response = await backend.complete(CompletionRequest(prompt="..."))
    """

    def __init__(self, name: str, config: ProviderConfig, model: str):
        self.name = name
        self.config = config
        self.model = model
        self._llms: Dict[Tuple[float, int, bool], BaseChatModel] = {}

    def _get_llm(self, temperature: float, max_tokens: int, json_mode: bool) -> BaseChatModel:
        """Lazy-load the chat model for these settings."""
        key = (temperature, max_tokens, json_mode)
        if key in self._llms:
            return self._llms[key]

        if self.name == "gemini":
            from langchain_google_genai import ChatGoogleGenerativeAI
            llm = ChatGoogleGenerativeAI(
                model=self.model,
                google_api_key=self.config.api_key,
                temperature=temperature,
                max_output_tokens=max_tokens,
            )
        elif self.name == "groq":
            from langchain_groq import ChatGroq
            llm = ChatGroq(
                model=self.model,
                api_key=self.config.api_key,
                temperature=temperature,
                max_tokens=max_tokens,
                model_kwargs=self._json_kwargs(json_mode),
            )
        elif self.name == "openai":
            from langchain_openai import ChatOpenAI
            llm = ChatOpenAI(
                model=self.model,
                api_key=self.config.api_key,
                temperature=temperature,
                max_tokens=max_tokens,
                model_kwargs=self._json_kwargs(json_mode),
            )
        else:
            raise ValueError(f"Unknown LLM provider: {self.name}")

        self._llms[key] = llm
        return llm

    @staticmethod
    def _json_kwargs(json_mode: bool) -> Dict[str, Any]:
        return {"response_format": {"type": "json_object"}} if json_mode else {}

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        start = time.perf_counter()
        llm = self._get_llm(
            request.temperature if request.temperature is not None else self.config.temperature,
            request.max_tokens or self.config.max_tokens,
            request.json_mode,
        )

        messages = []
        if request.system_prompt:
            messages.append(SystemMessage(content=request.system_prompt))
        messages.append(HumanMessage(content=request.prompt))

        logger.debug(f"[{self.name}] prompt: {request.prompt[:120]!r}")
        response = await llm.ainvoke(messages)

        usage = getattr(response, "usage_metadata", None) or {}
        return CompletionResponse(
            content=_content_text(response.content),
            tokens_used=int(usage.get("total_tokens", 0) or 0),
            provider=self.name,
            model=self.model,
            duration_ms=int((time.perf_counter() - start) * 1000),
        )


def build_backends(config: AppConfig) -> Dict[str, LLMBackend]:
    """Create a backend for every provider that has an API key configured."""
    backends: Dict[str, LLMBackend] = {}
    for name in ("gemini", "groq", "openai"):
        provider_config = config.provider(name)
        if not provider_config.api_key:
            logger.debug(f"No API key for {name}, backend not registered")
            continue
        backends[name] = LangChainBackend(name, provider_config, config.model_for(name))

    logger.info(f"Registered provider backends: {', '.join(backends) or 'none'}")
    return backends


_RAW_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_json_response(content: str) -> Optional[Dict[str, Any]]:
    """Parse a JSON object out of an LLM response.

    Handles ```json fenced blocks and objects wrapped in prose. Returns None
    when nothing usable is found; callers decide how to degrade.
    """
    parser = JsonOutputParser()
    candidates = [content]
    match = _RAW_OBJECT.search(content or "")
    if match:
        candidates.append(match.group(0))

    for candidate in candidates:
        try:
            result = parser.parse(candidate)
        except OutputParserException:
            continue
        if isinstance(result, dict):
            return result

    logger.debug(f"Could not parse JSON from response: {(content or '')[:200]!r}")
    return None
