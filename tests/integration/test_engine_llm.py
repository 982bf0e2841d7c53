"""Integration tests for Engine + LLM interaction."""

import json
from unittest.mock import MagicMock

import httpx
import openai
import pytest
from chatdesk import ChatDesk
from chatdesk.llm import ChatGPT, DeepSeek, Provider
from chatdesk.models import FUNCTION_ROLE, USER_ROLE, ChatMessage


class TestEngineLLMIntegration:
    """Full request paths through real providers backed by a fake SDK client."""

    def test_greeting_without_credentials(self, make_desk, fake_client):
        desk = make_desk(chatgpt_key=None, deepseek_key=None)

        answer = desk.get_ai_response(
            [ChatMessage(role=USER_ROLE, content="hello")], {"model": "deepseek-coder"}
        )

        assert answer.startswith("Hello!")
        fake_client.chat.completions.create.assert_not_called()

    def test_plain_answer_from_chatgpt(self, make_desk, fake_client):
        fake_client.chat.completions.create.return_value = {
            "choices": [{"message": {"role": "assistant", "content": "Hi there"}}]
        }

        answer = make_desk().get_ai_response(
            [{"role": "user", "content": "hello"}], {"model": "chatgpt"}
        )

        assert answer == "Hi there"
        fake_client.chat.completions.create.assert_called_once()

    def test_order_lookup_round_trip(self, make_desk, fake_client, completion, order_payload):
        create = fake_client.chat.completions.create
        create.side_effect = [
            completion(function_call=("fetchOrderInfo", {"orderId": "1001"})),
            completion(content="Order 1001 has shipped."),
        ]

        answer = make_desk().get_ai_response(
            [{"role": "user", "content": "Where is order 1001?"}], {"model": "chatgpt"}
        )

        assert answer == "Order 1001 has shipped."
        assert create.call_count == 2
        sent = create.call_args_list[1].kwargs["messages"]
        function_messages = [m for m in sent if m["role"] == FUNCTION_ROLE]
        assert len(function_messages) == 1
        assert function_messages[0]["name"] == "fetchOrderInfo"
        content = json.loads(function_messages[0]["content"])
        assert content["order_id"] == order_payload["order_id"]
        assert content["status"] == order_payload["status"]
        assert content["total"] == order_payload["total"]

    def test_unknown_function_terminates(self, make_desk, fake_client, completion):
        create = fake_client.chat.completions.create
        create.side_effect = [
            completion(function_call=("cancelOrder", {"orderId": "1001"})),
            completion(content="I can't cancel orders, sorry."),
        ]

        answer = make_desk().get_ai_response(
            [{"role": "user", "content": "Cancel order 1001"}], {"model": "deepseek"}
        )

        assert answer == "I can't cancel orders, sorry."
        last = create.call_args_list[1].kwargs["messages"][-1]
        assert last == {"role": FUNCTION_ROLE, "content": "null", "name": "cancelOrder"}

    def test_identical_calls_send_identical_payloads(self, make_desk, fake_client):
        desk = make_desk()
        messages = [{"role": "user", "content": "Do you ship abroad?"}]
        settings = {"model": "deepseek-coder", "temperature": 0.2, "max_tokens": 300}

        desk.get_ai_response(messages, settings)
        desk.get_ai_response(messages, settings)

        first, second = fake_client.chat.completions.create.call_args_list
        first_kwargs = {k: v for k, v in first.kwargs.items() if k != "timeout"}
        second_kwargs = {k: v for k, v in second.kwargs.items() if k != "timeout"}
        assert first_kwargs == second_kwargs
        assert first_kwargs["temperature"] == 0.2
        assert first_kwargs["max_tokens"] == 300

    @pytest.mark.parametrize(
        "model, provider_cls",
        [("chatgpt", ChatGPT), ("deepseek-coder", DeepSeek)],
    )
    def test_provider_failure_is_answered_offline(self, config, responder, model, provider_cls):
        client = MagicMock()
        client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=httpx.Request("POST", "https://example.test")
        )
        provider = provider_cls(api_key="k", client=client)
        desk = ChatDesk(
            providers={Provider.CHATGPT: provider, Provider.DEEPSEEK: provider},
            responder=responder,
            config=config,
        )

        answer = desk.get_ai_response([{"role": "user", "content": "hi"}], {"model": model})
        assert answer.startswith("Hello!")
        client.chat.completions.create.assert_called_once()
