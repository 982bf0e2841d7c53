"""Concrete implementations for LLM providers."""

import logging
import re
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import openai

from .errors import ConfigurationError, ProviderError
from .models import USER_ROLE, ChatMessage, FunctionCall, ProjectSettings

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000


class Provider(str, Enum):
    """Upstream chat-completion services the orchestrator can call."""

    CHATGPT = "chatgpt"
    DEEPSEEK = "deepseek"


MODEL_ALIASES: Dict[str, Provider] = {
    "chatgpt": Provider.CHATGPT,
    "gpt-4o": Provider.CHATGPT,
    "gpt-4o-mini": Provider.CHATGPT,
    "gpt-4": Provider.CHATGPT,
    "deepseek": Provider.DEEPSEEK,
    "deepseek-chat": Provider.DEEPSEEK,
    "deepseek-coder": Provider.DEEPSEEK,
}


def resolve_provider(model: Optional[str]) -> Provider:
    """Maps a project's model name to a provider tag.

    Exact aliases win; otherwise the name is matched case-insensitively on the
    ``deepseek`` and ``chatgpt``/``gpt`` substrings.

    Raises
    ------
    ConfigurationError
        If the name matches no provider, or matches both.
    """
    name = (model or "").strip().lower()
    if name in MODEL_ALIASES:
        return MODEL_ALIASES[name]

    matches = set()
    if "deepseek" in name:
        matches.add(Provider.DEEPSEEK)
    if "gpt" in name:
        matches.add(Provider.CHATGPT)

    if not matches:
        raise ConfigurationError(f"No provider is known for model {model!r}")
    if len(matches) > 1:
        raise ConfigurationError(f"Model {model!r} matches more than one provider")
    return matches.pop()


def _field(obj: Any, name: str) -> Any:
    """Reads ``name`` from a dict payload or an SDK object."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class LLM(ABC):
    """Abstract Base Class for all LLM providers."""

    name: str = "llm"

    @abstractmethod
    def generate_response(
        self,
        messages: Sequence[ChatMessage],
        settings: ProjectSettings,
        timeout: Optional[float] = None,
    ) -> Any:
        """Performs exactly one chat-completion call.

        Parameters
        ----------
        messages : Sequence[ChatMessage]
            The conversation, oldest message first.
        settings : ProjectSettings
            The project's temperature, token budget and function declarations.
        timeout : float, optional
            Upper bound in seconds for this call.

        Returns
        -------
        Any
            The provider's native response object.

        Raises
        ------
        ProviderError
            On transport failure or a non-2xx status.
        """
        pass

    @abstractmethod
    def extract_content(self, response: Any) -> str:
        """Extracts the answer from the provider's native response object.

        Returns the text verbatim, or a ``FunctionCall.to_text`` envelope when
        the model asked for a function call.

        Raises
        ------
        ProviderError
            If the response reports an error or carries neither text nor a
            function call.
        """
        pass

    @property
    def is_configured(self) -> bool:
        return True

    def complete(
        self,
        messages: Sequence[ChatMessage],
        settings: ProjectSettings,
        timeout: Optional[float] = None,
    ) -> str:
        response = self.generate_response(messages, settings, timeout=timeout)
        return self.extract_content(response)


class OpenAICompatible(LLM):
    """A provider speaking the OpenAI chat-completions protocol."""

    base_url: str = "https://api.openai.com/v1"
    default_model: str = "gpt-4o"

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[Any] = None,
    ):
        self.api_key = api_key
        self.model = default_model or self.default_model
        self.timeout = timeout
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> Any:
        """Lazily built SDK client; retries are left to the orchestrator."""
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError(f"{self.name} API key not configured")
            self._client = openai.OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def build_request(
        self, messages: Sequence[ChatMessage], settings: ProjectSettings
    ) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": [message.to_wire() for message in messages],
            "temperature": (
                DEFAULT_TEMPERATURE
                if settings.temperature is None
                else settings.temperature
            ),
            "max_tokens": settings.max_tokens or DEFAULT_MAX_TOKENS,
            "stream": False,
        }
        if settings.functions:
            request["functions"] = [spec.model_dump() for spec in settings.functions]
        return request

    def generate_response(self, messages, settings, timeout=None):
        request = self.build_request(messages, settings)
        options = {} if timeout is None else {"timeout": timeout}
        logger.debug(
            "Calling %s",
            self.name,
            extra={"provider": self.name, "message_count": len(request["messages"])},
        )
        try:
            return self.client.chat.completions.create(**request, **options)
        except openai.APIStatusError as e:
            raise ProviderError(
                f"{self.name} API error: {e.status_code} - {e.message}",
                status=e.status_code,
                provider=self.name,
            ) from e
        except openai.APIConnectionError as e:
            raise ProviderError(
                f"Failed to reach {self.name}: {e}", provider=self.name
            ) from e
        except openai.OpenAIError as e:
            raise ProviderError(f"{self.name} error: {e}", provider=self.name) from e

    def extract_content(self, response: Any) -> str:
        error = _field(response, "error")
        if error:
            message = _field(error, "message") or str(error)
            raise ProviderError(f"{self.name} API error: {message}", provider=self.name)

        choices = _field(response, "choices") or []
        message = _field(choices[0], "message") if choices else None
        content = _field(message, "content")
        if content:
            return content

        function_call = _field(message, "function_call")
        if function_call and _field(function_call, "name"):
            return FunctionCall(
                name=_field(function_call, "name"),
                arguments=_field(function_call, "arguments") or "{}",
            ).to_text()

        raise ProviderError(
            f"Invalid response format from {self.name}", provider=self.name
        )


class ChatGPT(OpenAICompatible):
    """General-purpose provider (OpenAI)."""

    name = "chatgpt"
    base_url = "https://api.openai.com/v1"
    default_model = "gpt-4o"


class DeepSeek(OpenAICompatible):
    """Code-specialized provider with a fixed model and stop sequence."""

    name = "deepseek"
    base_url = "https://api.deepseek.com/v1"
    default_model = "deepseek-chat"
    STOP = ["<|endoftext|>"]

    def build_request(self, messages, settings):
        request = super().build_request(messages, settings)
        request["model"] = self.default_model
        request["stop"] = list(self.STOP)
        return request


class Simulated:
    """Offline stand-in used when no provider is usable.

    Answers by keyword matching on the latest user message after an
    artificial delay. It never raises and never returns empty text.
    """

    FALLBACK_REPLY = (
        "I'm the store's AI assistant. I can help with orders, products and "
        "refunds. How can I assist you today?"
    )

    GREETING = re.compile(r"\b(hello|hi|hey|good (morning|afternoon|evening))\b")
    CAPABILITIES = re.compile(r"\b(help|what can you do|features?|capabilities)\b")
    MODEL = re.compile(r"\b(model|which ai)\b")
    SHOP = re.compile(r"\b(orders?|refunds?|products?|stock|shipping|delivery)\b")

    def __init__(self, delay: float = 1.0, default_model: str = "deepseek-coder"):
        self.delay = delay
        self.default_model = default_model

    def respond(
        self,
        messages: Sequence[Any],
        settings: Optional[ProjectSettings] = None,
    ) -> str:
        try:
            if self.delay:
                time.sleep(self.delay)
            return self._reply(list(messages), settings or ProjectSettings())
        except Exception:
            logger.exception("Simulated responder failed")
            return self.FALLBACK_REPLY

    def _reply(self, messages: List[Any], settings: ProjectSettings) -> str:
        last_user = next(
            (m for m in reversed(messages) if _field(m, "role") == USER_ROLE), None
        )
        if last_user is None:
            return "I don't see a question. How can I help you?"

        question = str(_field(last_user, "content") or "")
        text = question.lower()

        if self.GREETING.search(text):
            return (
                "Hello! I'm the store's AI assistant. I can check orders, look up "
                "products and follow up on refunds. How can I help you today?"
            )
        if self.CAPABILITIES.search(text):
            return (
                "I can check the status and contents of an order, look up product "
                "prices and stock levels, follow up on refunds, and answer general "
                "customer service questions. What would you like to do?"
            )
        if self.MODEL.search(text):
            temperature = (
                DEFAULT_TEMPERATURE if settings.temperature is None else settings.temperature
            )
            return (
                f"I'm currently configured to use {self._model_label(settings)} "
                f"with a temperature setting of {temperature}."
            )
        match = self.SHOP.search(text)
        if match:
            return (
                f"I can't reach the live store data right now, so I can't look up "
                f"{match.group(1)} details at the moment. Please try again in a few "
                "minutes, and keep your order or product ID at hand."
            )
        return (
            f'Thanks for your question "{question}". I can\'t reach the assistant '
            "service right now, so I can only give a limited answer. Please try "
            "again shortly for a detailed response."
        )

    def _model_label(self, settings: ProjectSettings) -> str:
        model = settings.model or self.default_model
        try:
            provider = resolve_provider(model)
        except ConfigurationError:
            return f"the {model} model"
        if provider is Provider.CHATGPT:
            return "the ChatGPT (GPT-4o) model"
        return "the DeepSeek model"
