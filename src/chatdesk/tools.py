"""Concrete implementations for tool handlers."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from .adapters import DataAdapter
from .errors import AdapterError
from .models import FunctionCall, FunctionSpec, ToolResult
from .prompts import DATA_FUNCTIONS, DEFAULT_VOICE_ID, GENERATE_VOICE_RESPONSE
from .voice import Voice

logger = logging.getLogger(__name__)


class Tool(ABC):
    """Interface for executing model-issued function calls."""

    @abstractmethod
    def get_tools(self) -> List[FunctionSpec]:
        """Returns the function declarations offered to the model."""
        return []

    @abstractmethod
    def execute_tool_call(self, tool_call: FunctionCall) -> ToolResult:
        """Executes a function call; failures come back as error results."""
        pass


class NoTool(Tool):
    """Default handler that provides no tools and does nothing."""

    def get_tools(self) -> List[FunctionSpec]:
        return []

    def execute_tool_call(self, tool_call: FunctionCall) -> ToolResult:
        return ToolResult(
            function_name=tool_call.name,
            content=json.dumps({"error": "No functions are available (NoTool handler is active)."}),
            is_error=True,
        )


def _serialize(result: Any) -> str:
    if isinstance(result, BaseModel):
        return json.dumps(result.model_dump(mode="json"))
    try:
        return json.dumps(result)
    except TypeError:
        return json.dumps(str(result))


def _argument(arguments: Dict[str, Any], *names: str) -> Any:
    for name in names:
        value = arguments.get(name)
        if value not in (None, ""):
            return value
    raise ValueError(f"Missing required argument '{names[0]}'")


class BusinessTools(Tool):
    """Resolves shop lookups against a data adapter, plus voice synthesis.

    Unknown function names produce a ``null`` result. Bad arguments and
    adapter failures produce ``{"error": ...}`` results so the model can
    explain the problem to the user.
    """

    def __init__(
        self,
        adapter: DataAdapter,
        voice: Optional[Voice] = None,
        default_voice_id: str = DEFAULT_VOICE_ID,
    ):
        self.adapter = adapter
        self.voice = voice
        self.default_voice_id = default_voice_id
        self._registry: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            "fetchOrderInfo": self._fetch_order_info,
            "fetchProductInfo": self._fetch_product_info,
            "fetchRefundInfo": self._fetch_refund_info,
            "generateVoiceResponse": self._generate_voice_response,
        }

    def get_tools(self) -> List[FunctionSpec]:
        specs = list(DATA_FUNCTIONS)
        if self.voice is not None:
            specs.append(GENERATE_VOICE_RESPONSE)
        return specs

    def execute_tool_call(self, tool_call: FunctionCall) -> ToolResult:
        name = tool_call.name
        handler = self._registry.get(name)
        if handler is None:
            logger.warning("Model called unknown function %s", name)
            return ToolResult(function_name=name, content=_serialize(None))

        try:
            arguments = tool_call.parsed_arguments()
        except ValueError as e:
            return self._error(name, f"Failed to parse arguments: {e}")

        logger.info("Dispatching %s", name, extra={"function": name})
        try:
            result = handler(arguments)
        except ValueError as e:
            return self._error(name, f"Invalid arguments: {e}")
        except AdapterError as e:
            logger.warning("%s failed: %s", name, e, extra={"function": name})
            return self._error(name, f"The data needed for {name} is temporarily unavailable.")
        return ToolResult(function_name=name, content=_serialize(result))

    def _error(self, name: str, message: str) -> ToolResult:
        return ToolResult(
            function_name=name, content=json.dumps({"error": message}), is_error=True
        )

    def _fetch_order_info(self, arguments):
        return self.adapter.fetch_order_info(str(_argument(arguments, "orderId", "order_id")))

    def _fetch_product_info(self, arguments):
        return self.adapter.fetch_product_info(
            str(_argument(arguments, "productId", "product_id"))
        )

    def _fetch_refund_info(self, arguments):
        return self.adapter.fetch_refund_info(str(_argument(arguments, "orderId", "order_id")))

    def _generate_voice_response(self, arguments):
        if self.voice is None:
            raise AdapterError("Voice synthesis is not configured", source="voice")
        return self.voice.synthesize(
            text=str(_argument(arguments, "text", "script")),
            voice_id=arguments.get("voiceId") or self.default_voice_id,
            model_id=arguments.get("modelId"),
            similarity_boost=arguments.get("similarityBoost"),
            stability=arguments.get("stability"),
        )
