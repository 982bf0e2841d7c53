"""
The main entrypoint for the chatdesk package.

This module contains the primary ChatDesk class, which wires together the
extensible pillars: LLM providers, the tool handler that resolves function calls
against business data, the simulated responder and the orchestration engine.
"""

import logging
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from .config import Config, build_adapter, build_voice, configure_logging
from .engine import Engine, Synchronous
from .errors import AdapterError, ChatDeskError, ConfigurationError, ProviderError
from .llm import LLM, ChatGPT, DeepSeek, Provider, Simulated
from .models import ChatMessage, ProjectSettings
from .prompts import DEFAULT_SYSTEM_PROMPT
from .tools import BusinessTools, NoTool, Tool

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ChatDesk",
    "get_ai_response",
    "Config",
    "ChatMessage",
    "ProjectSettings",
    "Provider",
    "ChatDeskError",
    "ConfigurationError",
    "ProviderError",
    "AdapterError",
]


class ChatDesk:
    """
    The central object answering shop-support conversations.

    The constructor implements dependency injection for each pillar. Defaults
    are built from ``config``; any pillar can be replaced by a custom
    implementation or a test double.

    Parameters
    ----------
    providers : Mapping[Provider, LLM], optional
        Provider clients keyed by provider tag. Defaults to ChatGPT and
        DeepSeek clients holding the credentials from ``config``.
    tools : Tool, optional
        Function-call handler. Defaults to ``NoTool()``; use
        ``ChatDesk.from_config`` to get ``BusinessTools`` over the configured
        data adapter.
    responder : Simulated, optional
        Offline fallback responder.
    engine : Engine, optional
        Orchestration engine. Defaults to ``Synchronous`` bounded by
        ``config.max_turns`` and ``config.deadline_seconds``.
    config : Config, optional
        Deployment configuration. Defaults to values read from the
        environment.
    system_prompt : str, optional
        Injected when a conversation carries no system message.

    Examples
    --------
    >>> desk = ChatDesk.from_config()
    >>> desk.get_ai_response(
    ...     [{"role": "user", "content": "Where is order 1001?"}],
    ...     {"model": "chatgpt"},
    ... )
    """

    def __init__(
        self,
        providers: Optional[Mapping[Provider, LLM]] = None,
        tools: Optional[Tool] = None,
        responder: Optional[Simulated] = None,
        engine: Optional[Engine] = None,
        config: Optional[Config] = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        self.config = config if config is not None else Config()

        if providers is None:
            providers = {
                Provider.CHATGPT: ChatGPT(
                    api_key=self.config.chatgpt_api_key,
                    timeout=self.config.request_timeout,
                ),
                Provider.DEEPSEEK: DeepSeek(
                    api_key=self.config.deepseek_api_key,
                    timeout=self.config.request_timeout,
                ),
            }
        self.providers: Dict[Provider, LLM] = dict(providers)

        self.tools = tools if tools is not None else NoTool()
        self.responder = (
            responder
            if responder is not None
            else Simulated(
                delay=self.config.simulated_delay,
                default_model=self.config.default_model,
            )
        )
        self.engine = (
            engine
            if engine is not None
            else Synchronous(
                max_turns=self.config.max_turns,
                deadline=self.config.deadline_seconds,
            )
        )
        self.engine.app = self
        self.system_prompt = system_prompt

    @classmethod
    def from_config(cls, config: Optional[Config] = None, **kwargs: Any) -> "ChatDesk":
        """Builds a ChatDesk whose tools read the configured data adapter.

        Also sets the package log level to ``config.log_level``.
        """
        config = config if config is not None else Config()
        configure_logging(config.log_level)
        tools = BusinessTools(build_adapter(config), voice=build_voice(config))
        return cls(tools=tools, config=config, **kwargs)

    def get_ai_response(
        self,
        messages: Sequence[Union[ChatMessage, dict]],
        settings: Union[ProjectSettings, dict, None] = None,
    ) -> str:
        """Answers the conversation; always returns text."""
        return self.engine.handle_message(messages, settings)


@lru_cache(maxsize=1)
def default_desk() -> ChatDesk:
    """The ChatDesk built from the environment, created on first use."""
    return ChatDesk.from_config()


def get_ai_response(
    messages: Sequence[Union[ChatMessage, dict]],
    settings: Union[ProjectSettings, dict, None] = None,
) -> str:
    """Answers the conversation with the environment-configured ChatDesk."""
    return default_desk().get_ai_response(messages, settings)
