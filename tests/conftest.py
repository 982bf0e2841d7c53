"""
Core pytest configuration and fixtures for chatdesk testing.

This module provides shared test data, fake SDK clients and pre-wired ChatDesk
instances so that no test touches the network.
"""

import copy
import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
from chatdesk import ChatDesk
from chatdesk.adapters import InMemory
from chatdesk.config import Config
from chatdesk.llm import ChatGPT, DeepSeek, Provider, Simulated
from chatdesk.models import (
    ASSISTANT_ROLE,
    USER_ROLE,
    ChatMessage,
    OrderDetails,
    ProductDetails,
    RefundDetails,
)
from chatdesk.tools import BusinessTools

# ===== TEST DATA =====

ORDER_PAYLOAD = {
    "order_id": "1001",
    "status": "shipped",
    "total": 59.9,
    "created_at": "2024-05-01T12:00:00",
    "items": [{"product_id": "p-1", "quantity": 2, "price": 29.95}],
}

PRODUCT_PAYLOAD = {
    "product_id": "p-1",
    "name": "Ceramic Mug",
    "description": "A 350ml mug.",
    "price": 29.95,
    "stock": 12,
}

REFUND_PAYLOAD = {
    "order_id": "1001",
    "amount": 59.9,
    "status": "approved",
    "reason": "Arrived damaged",
}


def make_completion(
    content: Optional[str] = None,
    function_call: Optional[Tuple[str, Any]] = None,
    error: Optional[str] = None,
) -> SimpleNamespace:
    """Builds an object shaped like an SDK chat completion."""
    if error is not None:
        return SimpleNamespace(error=SimpleNamespace(message=error), choices=[])
    call = None
    if function_call is not None:
        name, arguments = function_call
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        call = SimpleNamespace(name=name, arguments=arguments)
    message = SimpleNamespace(role=ASSISTANT_ROLE, content=content, function_call=call)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason="stop")])


@pytest.fixture
def completion():
    """Factory fixture for fake chat completions."""
    return make_completion


@pytest.fixture
def order_payload() -> Dict[str, Any]:
    return copy.deepcopy(ORDER_PAYLOAD)


@pytest.fixture
def product_payload() -> Dict[str, Any]:
    return dict(PRODUCT_PAYLOAD)


@pytest.fixture
def refund_payload() -> Dict[str, Any]:
    return dict(REFUND_PAYLOAD)


@pytest.fixture
def sample_messages() -> List[ChatMessage]:
    return [
        ChatMessage(role=USER_ROLE, content="Hi, I have a question."),
        ChatMessage(role=ASSISTANT_ROLE, content="Sure, how can I help?"),
        ChatMessage(role=USER_ROLE, content="Where is my order 1001?"),
    ]


@pytest.fixture
def in_memory_adapter() -> InMemory:
    return InMemory(
        orders=[OrderDetails.model_validate(ORDER_PAYLOAD)],
        products=[ProductDetails.model_validate(PRODUCT_PAYLOAD)],
        refunds=[RefundDetails.model_validate(REFUND_PAYLOAD)],
    )


# ===== MOCK FIXTURES =====


@pytest.fixture
def fake_client() -> MagicMock:
    """Stand-in for ``openai.OpenAI``; configure ``chat.completions.create``."""
    client = MagicMock()
    client.chat.completions.create.return_value = make_completion(content="Mock answer")
    return client


@pytest.fixture
def config() -> Config:
    return Config(
        _env_file=None,
        chatgpt_api_key="test-openai-key",
        deepseek_api_key="test-deepseek-key",
        elevenlabs_api_key=None,
        adapter="memory",
        simulated_delay=0,
    )


@pytest.fixture
def responder() -> Simulated:
    return Simulated(delay=0)


@pytest.fixture
def make_desk(config, fake_client, responder, in_memory_adapter):
    """Builds a ChatDesk whose providers share ``fake_client``."""

    def _make(
        chatgpt_key: Optional[str] = "test-openai-key",
        deepseek_key: Optional[str] = "test-deepseek-key",
        **kwargs: Any,
    ) -> ChatDesk:
        providers = {
            Provider.CHATGPT: ChatGPT(api_key=chatgpt_key, client=fake_client),
            Provider.DEEPSEEK: DeepSeek(api_key=deepseek_key, client=fake_client),
        }
        kwargs.setdefault("tools", BusinessTools(in_memory_adapter))
        kwargs.setdefault("responder", responder)
        return ChatDesk(providers=providers, config=config, **kwargs)

    return _make


# ===== CONFIGURATION =====


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
