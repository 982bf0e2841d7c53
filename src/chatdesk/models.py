"""
Defines the core Pydantic data models for the package.

These models serve as the formal, validated data contract between all other pillars,
aligning with the OpenAI chat-completions wire format (messages, legacy
``functions`` declarations and ``function_call`` directives).
"""

import json
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# --- Constants ---
USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
SYSTEM_ROLE = "system"
FUNCTION_ROLE = "function"
Role = Literal[USER_ROLE, ASSISTANT_ROLE, SYSTEM_ROLE, FUNCTION_ROLE]

FUNCTION_CALL_KEY = "function_call"


# --- Conversation models ---
class ChatMessage(BaseModel):
    """Represents a single message within a conversation."""

    role: Role
    content: str
    name: Optional[str] = None

    @model_validator(mode="after")
    def _function_messages_need_a_name(self) -> "ChatMessage":
        if self.role == FUNCTION_ROLE and not self.name:
            raise ValueError("function messages require the 'name' of the called function")
        return self

    def to_wire(self) -> Dict[str, Any]:
        """Returns the message as a provider-ready dictionary."""
        message = {"role": self.role, "content": self.content}
        if self.name:
            message["name"] = self.name
        return message


class FunctionSpec(BaseModel):
    """Declares a capability the model may invoke."""

    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class ProjectSettings(BaseModel):
    """Per-project model configuration, owned by the calling collaborator.

    ``temperature`` and ``max_tokens`` are optional; each provider applies its
    own defaults when they are unset.
    """

    model_config = ConfigDict(frozen=True)

    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    functions: Optional[List[FunctionSpec]] = None


class FunctionCall(BaseModel):
    """A model-issued function-call directive.

    Providers serialize it into the textual channel with ``to_text`` so the
    orchestrator can detect it uniformly, whichever provider produced it.
    """

    name: str
    arguments: str = "{}"

    def to_text(self) -> str:
        return json.dumps({FUNCTION_CALL_KEY: self.model_dump()})

    @classmethod
    def from_text(cls, text: Optional[str]) -> Optional["FunctionCall"]:
        """Parses a ``to_text`` envelope, returning None for ordinary text."""
        if not text or not text.lstrip().startswith("{"):
            return None
        try:
            payload = json.loads(text)
        except ValueError:
            return None
        if not isinstance(payload, dict):
            return None
        directive = payload.get(FUNCTION_CALL_KEY)
        if not isinstance(directive, dict) or not directive.get("name"):
            return None
        arguments = directive.get("arguments") or "{}"
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return cls(name=directive["name"], arguments=arguments)

    def parsed_arguments(self) -> Dict[str, Any]:
        """JSON-decodes the arguments.

        Raises
        ------
        ValueError
            If the arguments are not a JSON object.
        """
        arguments = json.loads(self.arguments or "{}")
        if not isinstance(arguments, dict):
            raise ValueError("function arguments must be a JSON object")
        return arguments


class ToolResult(BaseModel):
    """The serialized outcome of a dispatched function call."""

    function_name: str
    content: str
    is_error: bool = False


# --- Business records ---
# Backends may send ids as numbers; they are kept exactly as received.
RecordId = Union[str, int]


class Record(BaseModel):
    """Base for backend records; unknown backend fields are kept as-is."""

    model_config = ConfigDict(extra="allow")


class OrderItem(Record):
    product_id: Optional[RecordId] = None
    quantity: int
    price: float
    name: Optional[str] = None
    description: Optional[str] = None


class OrderDetails(Record):
    order_id: RecordId
    status: str
    total: float
    created_at: str
    items: Optional[List[OrderItem]] = None


class ProductDetails(Record):
    product_id: RecordId
    name: str
    description: str
    price: float
    stock: int


class RefundDetails(Record):
    order_id: RecordId
    amount: float
    status: str
    reason: Optional[str] = None
