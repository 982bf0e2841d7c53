"""The orchestration engine: provider selection, the function-call loop and fallback."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence, Union

from .errors import ConfigurationError, ProviderError
from .llm import LLM, resolve_provider
from .models import (
    FUNCTION_ROLE,
    SYSTEM_ROLE,
    ChatMessage,
    FunctionCall,
    ProjectSettings,
)

logger = logging.getLogger(__name__)

SettingsLike = Union[ProjectSettings, dict, None]


class Engine(ABC):
    """Abstract engine turning a conversation into one answer.

    The engine reads its collaborators (``providers``, ``tools``,
    ``responder``, ``system_prompt``, ``config``) from the bound app.
    """

    def __init__(self, app: Any = None):
        self.app = app

    @abstractmethod
    def handle_message(
        self, messages: Sequence[Union[ChatMessage, dict]], settings: SettingsLike = None
    ) -> str:
        """Returns the final answer for ``messages``."""
        pass


class Synchronous(Engine):
    """Blocking engine running the provider/function-call loop.

    Each request makes at most ``max_turns`` provider calls and must finish
    within ``deadline`` seconds; past either bound, and on any provider
    failure, the answer comes from the simulated responder. Nothing per-call
    is stored on the engine, so one instance can serve concurrent requests.
    """

    MAX_AGENTIC_TURNS = 5
    DEADLINE_SECONDS = 60.0

    def __init__(
        self,
        app: Any = None,
        max_turns: Optional[int] = None,
        deadline: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.max_turns = self.MAX_AGENTIC_TURNS if max_turns is None else max_turns
        self.deadline = self.DEADLINE_SECONDS if deadline is None else deadline
        self.clock = clock

    def handle_message(self, messages, settings=None):
        app = self.app
        try:
            settings = self._resolve_settings(settings)
        except ValueError as e:
            logger.error("Rejected project settings: %s", e)
            return app.responder.respond(messages, None)

        model = settings.model or app.config.default_model
        try:
            provider = self._select_provider(model)
        except ConfigurationError as e:
            logger.warning(
                "Using simulated responses: %s", e, extra={"model": model}
            )
            return app.responder.respond(messages, settings)

        try:
            return self._run(provider, self._prepare_messages(messages), settings)
        except Exception:
            logger.exception("Unexpected failure while answering", extra={"model": model})
            return app.responder.respond(messages, settings)

    def _resolve_settings(self, settings: SettingsLike) -> ProjectSettings:
        if settings is None:
            settings = ProjectSettings()
        elif isinstance(settings, dict):
            settings = ProjectSettings.model_validate(settings)
        if settings.functions is None:
            declared = self.app.tools.get_tools()
            if declared:
                settings = settings.model_copy(update={"functions": list(declared)})
        return settings

    def _select_provider(self, model: str) -> LLM:
        tag = resolve_provider(model)
        provider = self.app.providers.get(tag)
        if provider is None or not provider.is_configured:
            raise ConfigurationError(f"No API key configured for {tag.value}")
        logger.info("Using %s for model %s", tag.value, model)
        return provider

    def _prepare_messages(self, messages) -> List[ChatMessage]:
        """Copies the caller's messages and makes sure a system prompt leads."""
        working = [ChatMessage.model_validate(m).model_copy() for m in messages]
        if not any(m.role == SYSTEM_ROLE for m in working):
            working.insert(0, ChatMessage(role=SYSTEM_ROLE, content=self.app.system_prompt))
        return working

    def _run(
        self, provider: LLM, working: List[ChatMessage], settings: ProjectSettings
    ) -> str:
        app = self.app
        expires_at = self.clock() + self.deadline

        for turn in range(1, self.max_turns + 1):
            remaining = expires_at - self.clock()
            if remaining <= 0:
                logger.warning("Deadline of %.1fs exceeded after %d turns", self.deadline, turn - 1)
                return app.responder.respond(working, settings)

            limit = getattr(provider, "timeout", None)
            timeout = min(remaining, limit) if isinstance(limit, (int, float)) else remaining
            self._before_llm_call(working)
            try:
                text = provider.complete(working, settings, timeout=timeout)
            except ProviderError as e:
                logger.error(
                    "Provider call failed: %s",
                    e,
                    extra={"provider": provider.name, "status": e.status, "turn": turn},
                )
                return app.responder.respond(working, settings)
            self._after_llm_call(text)

            call = FunctionCall.from_text(text)
            if call is None:
                return text

            result = app.tools.execute_tool_call(call)
            working.append(
                ChatMessage(role=FUNCTION_ROLE, name=call.name, content=result.content)
            )

        logger.warning("Model kept calling functions for %d turns", self.max_turns)
        return app.responder.respond(working, settings)

    def _before_llm_call(self, messages: List[ChatMessage]) -> None:
        """Hook run before each provider call; may edit ``messages`` in place."""
        pass

    def _after_llm_call(self, text: str) -> None:
        """Hook run after each successful provider call."""
        pass
