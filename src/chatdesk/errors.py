"""Error hierarchy.

Provider and configuration errors are absorbed by the orchestrator and answered
by the simulated responder. Adapter errors are turned into error-shaped function
results so the model can tell the user. A missing record is never an error: it
is represented as ``None``.
"""

from typing import Optional


class ChatDeskError(Exception):
    """Base exception for the package."""


class ConfigurationError(ChatDeskError):
    """No usable provider for the requested model.

    Raised when the model name matches no known provider, matches more than
    one, or when the matched provider has no credential configured.
    """


class ProviderError(ChatDeskError):
    """A chat-completion call failed.

    Covers transport failures, non-2xx statuses, provider-reported error
    payloads and responses carrying neither text nor a function call.
    ``status`` is the HTTP status when one was received.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        provider: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.provider = provider

    def __str__(self) -> str:
        parts = [self.message]
        if self.provider:
            parts.append(f"provider={self.provider}")
        if self.status is not None:
            parts.append(f"status={self.status}")
        return " ".join(parts)


class AdapterError(ChatDeskError):
    """A data adapter or the voice collaborator could not be reached.

    Connectivity and authentication failures only; "not found" is ``None``.
    """

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source
