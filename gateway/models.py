"""
DATA MODELS MODULE
==================

Pydantic models for inbound request bodies, the normalized request handed to the
provider client, and the history entries stored on disk. Plain dataclasses carry
the provider result, which never leaves the process.

MODELS:
  Capability           - Which kind of interaction a request is (chat, vision, ...).
  ChatCompletionBody   - Body of POST /chat. Only model/messages are declared;
                         everything else passes through untouched.
  SpeechBody           - Body of POST /tts.
  ImageGenerationBody  - Body of POST /image/generate.
  UploadedFile         - One uploaded file, held in memory for a single request.
  NormalizedRequest    - Provider-shaped request produced by a normalizer.
  JsonBody/BinaryBody  - The two shapes a provider response body can take.
  ProviderResult       - Outcome of one provider call (success or failure).
  HistoryEntry         - One logged chat/document interaction.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Capability(str, Enum):
    CHAT = "chat"
    VISION = "vision"
    PDF = "pdf"
    DOCUMENT = "document"
    SPEECH = "speech"
    IMAGE_GENERATION = "image_generation"
    IMAGE_SEARCH = "image_search"


# ==============================================================================
# INBOUND BODIES
# ==============================================================================

class ChatCompletionBody(BaseModel):
    """
    Body of POST /chat: a provider chat-completion request.

    Neither field is type-checked (roles, content shape, even "messages": "hi");
    malformed input is forwarded and the provider's own 400 is relayed back. Unknown fields
    (temperature, tools, response_format, ...) are kept as-is.
    """
    model_config = ConfigDict(extra="allow")

    model: Optional[Any] = None
    messages: Optional[Any] = None


class SpeechBody(BaseModel):
    """Body of POST /tts. input and voice are checked by the normalizer (400, not 422)."""
    model_config = ConfigDict(extra="allow")

    input: Optional[str] = None
    voice: Optional[str] = None
    model: Optional[str] = None


class ImageGenerationBody(BaseModel):
    model_config = ConfigDict(extra="allow")

    prompt: Optional[str] = None
    n: Optional[int] = None
    size: Optional[str] = None
    model: Optional[str] = None


@dataclass(frozen=True)
class UploadedFile:
    buffer: bytes
    mime_type: str
    filename: str = ""


# ==============================================================================
# NORMALIZED REQUEST
# ==============================================================================

class NormalizedRequest(BaseModel):
    """
    Output of every normalizer. payload is the exact JSON body sent to the
    provider; model is already filled in (it is also inside payload where the
    provider expects it). For image_search, payload is {"query": ...}.
    """
    model_config = ConfigDict(frozen=True)

    capability: Capability
    model: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


# ==============================================================================
# PROVIDER RESULT
# ==============================================================================

@dataclass(frozen=True)
class JsonBody:
    value: Any


@dataclass(frozen=True)
class BinaryBody:
    content: bytes
    media_type: str = "application/octet-stream"


ProviderResponseBody = Union[JsonBody, BinaryBody]


class Outcome(str, Enum):
    SUCCESS = "success"
    PROVIDER_FAILURE = "provider_failure"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass(frozen=True)
class ProviderResult:
    """
    What came back from the provider. status_code and body are verbatim when
    the provider answered; a transport failure carries a synthesized 500.
    """
    outcome: Outcome
    status_code: int
    body: ProviderResponseBody

    @classmethod
    def transport_failure(cls, message: str) -> "ProviderResult":
        return cls(
            outcome=Outcome.TRANSPORT_FAILURE,
            status_code=500,
            body=JsonBody({"error": "Unknown error", "message": message}),
        )

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


# ==============================================================================
# HISTORY
# ==============================================================================

class HistoryEntry(BaseModel):
    """One chat/document interaction. Field names match the JSON on disk."""
    model_config = ConfigDict(frozen=True)

    userMessage: str
    aiResponse: str
    timestamp: str
