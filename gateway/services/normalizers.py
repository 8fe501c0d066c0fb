"""
PAYLOAD NORMALIZERS
===================

One function per inbound request shape. Each turns what the client sent into a
NormalizedRequest whose payload is exactly the body the provider expects.
Capability defaults come from config.CAPABILITY_DEFAULTS and are applied here
only; nothing downstream fills in a model, prompt or max_tokens again.

  normalize_chat              POST /chat            (provider-shaped JSON, model defaulted)
  normalize_pdf               POST /chat/pdf        (PDF as a data URI in a vision message)
  normalize_image             POST /chat/vision     (image as a data URI in a vision message)
  normalize_document          POST /chat/document   (extracted text + action instruction)
  normalize_speech            POST /tts
  normalize_image_generation  POST /image/generate
  normalize_image_search      GET  /image/search

All of them raise gateway.errors.ValidationError for missing input.
"""

import base64
from typing import Any, Optional, Tuple

from config import (
    CAPABILITY_DEFAULTS,
    DEFAULT_DOCUMENT_ACTION,
    DEFAULT_IMAGE_COUNT,
    DEFAULT_IMAGE_SIZE,
    DOCUMENT_ACTIONS,
    DOCUMENT_PREFIX,
)
from gateway.errors import ValidationError
from gateway.models import (
    Capability,
    ChatCompletionBody,
    ImageGenerationBody,
    NormalizedRequest,
    SpeechBody,
    UploadedFile,
)
from gateway.services.document_extractor import PDF_MIME_TYPE, extract_text


def parse_max_tokens(raw: Any, default: int) -> int:
    """Parse max_tokens as an int; anything unparseable (None, "", "abc", "1.5") gives default."""
    if raw is None or isinstance(raw, bool):
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        return default


def _require_file(upload: Optional[UploadedFile]) -> UploadedFile:
    if upload is None:
        raise ValidationError("No file uploaded")
    return upload


def _data_uri(buffer: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(buffer).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def _vision_request(
    capability: Capability,
    upload: UploadedFile,
    mime_type: str,
    prompt: Optional[str],
    model: Optional[str],
    max_tokens: Any,
) -> NormalizedRequest:
    defaults = CAPABILITY_DEFAULTS[capability]
    resolved_model = model or defaults.default_model
    payload = {
        "model": resolved_model,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt or defaults.default_prompt},
                    {"type": "image_url", "image_url": {"url": _data_uri(upload.buffer, mime_type)}},
                ],
            }
        ],
        "max_tokens": parse_max_tokens(max_tokens, defaults.default_max_tokens),
    }
    return NormalizedRequest(capability=capability, model=resolved_model, payload=payload)


# ==============================================================================
# CHAT
# ==============================================================================

def normalize_chat(body: ChatCompletionBody) -> NormalizedRequest:
    """
    Forward the chat body as-is, only filling in model when it is absent (or null).
    A present model is forwarded unchanged, even if it is not a string; the
    provider rejects it. Fields the client never sent stay absent.
    """
    payload = body.model_dump(exclude_unset=True)
    if body.model is None:
        payload["model"] = CAPABILITY_DEFAULTS[Capability.CHAT].default_model
    model = payload["model"] if isinstance(payload["model"], str) else None
    return NormalizedRequest(capability=Capability.CHAT, model=model, payload=payload)


# ==============================================================================
# FILE UPLOADS
# ==============================================================================

def normalize_pdf(
    upload: Optional[UploadedFile],
    prompt: Optional[str] = None,
    model: Optional[str] = None,
    max_tokens: Any = None,
) -> NormalizedRequest:
    """PDF sent to a vision model as an application/pdf data URI."""
    upload = _require_file(upload)
    return _vision_request(Capability.PDF, upload, PDF_MIME_TYPE, prompt, model, max_tokens)


def normalize_image(
    upload: Optional[UploadedFile],
    prompt: Optional[str] = None,
    model: Optional[str] = None,
    max_tokens: Any = None,
) -> NormalizedRequest:
    """Image sent to a vision model, tagged with the MIME type the client reported."""
    upload = _require_file(upload)
    return _vision_request(Capability.VISION, upload, upload.mime_type, prompt, model, max_tokens)


def build_document_instruction(action: Optional[str], prompt: Optional[str]) -> Tuple[str, str]:
    """
    Return (resolved action name, instruction text appended after the document).
    Unknown or missing actions use the default template.
    """
    action_name = (action or "").strip().lower()
    if action_name not in DOCUMENT_ACTIONS:
        action_name = DEFAULT_DOCUMENT_ACTION
    template, builtin = DOCUMENT_ACTIONS[action_name]
    instruction = (prompt or "").strip() or builtin
    return action_name, template.format(instruction=instruction)


def normalize_document(
    upload: Optional[UploadedFile],
    action: Optional[str] = None,
    prompt: Optional[str] = None,
    model: Optional[str] = None,
    max_tokens: Any = None,
) -> NormalizedRequest:
    """
    Extract text from a PDF/DOCX upload and wrap it in a single text prompt.

    Raises ValidationError when nothing was uploaded or nothing could be
    extracted; UnsupportedFormatError/ExtractionError come from the extractor.
    """
    upload = _require_file(upload)
    text = extract_text(upload.buffer, upload.mime_type)
    if not text.strip():
        raise ValidationError("Could not extract text")

    defaults = CAPABILITY_DEFAULTS[Capability.DOCUMENT]
    resolved_model = model or defaults.default_model
    _, instruction = build_document_instruction(action, prompt)
    payload = {
        "model": resolved_model,
        "messages": [{"role": "user", "content": DOCUMENT_PREFIX + text + instruction}],
        "max_tokens": parse_max_tokens(max_tokens, defaults.default_max_tokens),
    }
    return NormalizedRequest(capability=Capability.DOCUMENT, model=resolved_model, payload=payload)


# ==============================================================================
# SPEECH / IMAGES
# ==============================================================================

def normalize_speech(body: SpeechBody) -> NormalizedRequest:
    if not body.input or not body.voice:
        raise ValidationError("Input text and voice are required")
    payload = body.model_dump(exclude_none=True)
    model = body.model or CAPABILITY_DEFAULTS[Capability.SPEECH].default_model
    payload["model"] = model
    return NormalizedRequest(capability=Capability.SPEECH, model=model, payload=payload)


def normalize_image_generation(body: ImageGenerationBody) -> NormalizedRequest:
    if not body.prompt:
        raise ValidationError("No prompt provided")
    payload = body.model_dump(exclude_none=True)
    model = body.model or CAPABILITY_DEFAULTS[Capability.IMAGE_GENERATION].default_model
    payload["model"] = model
    payload.setdefault("n", DEFAULT_IMAGE_COUNT)
    payload.setdefault("size", DEFAULT_IMAGE_SIZE)
    return NormalizedRequest(capability=Capability.IMAGE_GENERATION, model=model, payload=payload)


def normalize_image_search(query: Optional[str]) -> NormalizedRequest:
    query = (query or "").strip()
    if not query:
        raise ValidationError("No query provided")
    return NormalizedRequest(capability=Capability.IMAGE_SEARCH, payload={"query": query})
