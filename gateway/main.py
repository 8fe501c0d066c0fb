"""
MULTI-MODAL GATEWAY API
=======================

This module defines the FastAPI application and all HTTP endpoints. Every route
follows the same path:

  inbound request -> normalizer (maybe + document extractor)
                  -> provider client (or image search)
                  -> relay -> optional history append -> response

ENDPOINTS:
  GET  /                - Liveness: plain "OK".
  POST /chat            - Provider chat-completion body, forwarded (model defaulted).
  POST /chat/pdf        - Multipart PDF sent to a vision model.
  POST /chat/vision     - Multipart image sent to a vision model.
  POST /chat/document   - Multipart PDF/DOCX; text extracted and sent with an action prompt.
  POST /tts             - Speech synthesis; returns audio/mpeg.
  POST /image/generate  - Image generation.
  GET  /image/search    - First image URL for ?q=...
  GET  /chat/history    - Every logged chat/document interaction, oldest first.

ERRORS:
  Local input problems -> 400 {"error": ...}. Provider errors are relayed with the
  provider's status and body. No provider response at all -> 500
  {"error": "Unknown error", "message": ...}. Nothing escapes a handler.

STARTUP:
  create_app() reads Settings once and builds the provider client, history log and
  image search service onto app.state. The lifespan closes the httpx client on
  shutdown.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import httpx
import uvicorn
from fastapi import APIRouter, FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from config import Settings, load_settings
from gateway.errors import GatewayError, ImageSearchError
from gateway.models import (
    Capability,
    ChatCompletionBody,
    ImageGenerationBody,
    JsonBody,
    NormalizedRequest,
    ProviderResult,
    SpeechBody,
    UploadedFile,
)
from gateway.services import normalizers
from gateway.services.history_log import HistoryLog
from gateway.services.image_search import ImageSearchService
from gateway.services.provider_client import ProviderClient
from gateway.services.relay import error_response, relay, unknown_error_response


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("GATEWAY")

# Capabilities whose successful responses are written to the history log.
HISTORY_CAPABILITIES = frozenset({Capability.CHAT, Capability.DOCUMENT})


# =============================================================================
# HELPERS
# =============================================================================

async def _read_upload(file: Optional[UploadFile]) -> Optional[UploadedFile]:
    """Read the whole upload into memory; None when no file was sent."""
    if file is None:
        return None
    buffer = await file.read()
    return UploadedFile(
        buffer=buffer,
        mime_type=file.content_type or "application/octet-stream",
        filename=file.filename or "",
    )


def _ai_response_text(result: ProviderResult) -> Optional[str]:
    """choices[0].message.content from a chat completion, or None if there isn't a usable one."""
    if not isinstance(result.body, JsonBody) or not isinstance(result.body.value, dict):
        return None
    value = result.body.value
    try:
        content = value["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) and content else None


def _last_user_message(payload: dict) -> str:
    messages = payload.get("messages")
    if not isinstance(messages, list):
        return ""
    for message in reversed(messages):
        if isinstance(message, dict) and message.get("role") == "user":
            content = message.get("content", "")
            return content if isinstance(content, str) else json.dumps(content, ensure_ascii=False)
    return ""


async def _forward(request: Request, normalized: NormalizedRequest, user_message: Optional[str] = None) -> Response:
    """
    Send to the provider, log the interaction if it qualifies, relay the result.
    The provider call is the only await that suspends on the network; the history
    append runs in the threadpool so its file I/O does not block the loop.
    """
    result = await request.app.state.provider.send(normalized)

    if result.ok and normalized.capability in HISTORY_CAPABILITIES:
        ai_text = _ai_response_text(result)
        if ai_text is not None:
            if user_message is None:
                user_message = _last_user_message(normalized.payload)
            # Best-effort: append() logs its own failures and never raises.
            await run_in_threadpool(request.app.state.history.append, user_message, ai_text)

    return relay(result)


# =============================================================================
# API ENDPOINTS
# =============================================================================
router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root():
    """Liveness check."""
    return "OK"


@router.post("/chat")
async def chat(request: Request, body: ChatCompletionBody):
    """
    Forward a provider chat-completion request.

    The body is sent as-is except that a missing "model" gets the chat default.
    Messages are not validated here; if the provider rejects them, its error is
    returned with its own status code.
    """
    logger.info("POST /chat")
    logger.debug("Incoming /chat body: %s", body.model_dump(exclude_unset=True))
    normalized = normalizers.normalize_chat(body)
    return await _forward(request, normalized)


@router.post("/chat/pdf")
async def chat_pdf(
    request: Request,
    file: Optional[UploadFile] = File(None),
    prompt: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    max_tokens: Optional[str] = Form(None),
):
    """Send an uploaded PDF to a vision model as an application/pdf data URI."""
    upload = await _read_upload(file)
    logger.info("POST /chat/pdf (%s)", upload.filename if upload else "no file")
    normalized = normalizers.normalize_pdf(upload, prompt=prompt, model=model, max_tokens=max_tokens)
    return await _forward(request, normalized)


@router.post("/chat/vision")
async def chat_vision(
    request: Request,
    file: Optional[UploadFile] = File(None),
    prompt: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    max_tokens: Optional[str] = Form(None),
):
    """Ask a vision model about an uploaded image (default prompt: "What is in this image?")."""
    upload = await _read_upload(file)
    logger.info("POST /chat/vision (%s)", upload.mime_type if upload else "no file")
    normalized = normalizers.normalize_image(upload, prompt=prompt, model=model, max_tokens=max_tokens)
    return await _forward(request, normalized)


@router.post("/chat/document")
async def chat_document(
    request: Request,
    file: Optional[UploadFile] = File(None),
    action: Optional[str] = Form(None),
    prompt: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    max_tokens: Optional[str] = Form(None),
):
    """
    Extract text from a PDF/DOCX upload and run an action on it.

    action is one of analyze, translate, fix (anything else uses the generic
    instruction). prompt customizes the instruction, e.g. the target language
    for translate. Unsupported file types and empty extractions are rejected
    with 400 before the provider is called.
    """
    upload = await _read_upload(file)
    logger.info("POST /chat/document (action=%s, %s)", action, upload.mime_type if upload else "no file")
    normalized = normalizers.normalize_document(
        upload, action=action, prompt=prompt, model=model, max_tokens=max_tokens
    )
    action_name, instruction = normalizers.build_document_instruction(action, prompt)
    user_message = f"[{action_name}] {upload.filename}: {instruction.strip()}"
    return await _forward(request, normalized, user_message=user_message)


@router.post("/tts")
async def tts(request: Request, body: SpeechBody):
    """Synthesize speech; on success the audio bytes are returned inline as audio/mpeg."""
    logger.info("POST /tts (voice=%s)", body.voice)
    normalized = normalizers.normalize_speech(body)
    return await _forward(request, normalized)


@router.post("/image/generate")
async def image_generate(request: Request, body: ImageGenerationBody):
    logger.info("POST /image/generate")
    normalized = normalizers.normalize_image_generation(body)
    return await _forward(request, normalized)


@router.get("/image/search")
def image_search(request: Request, q: Optional[str] = None):
    """
    Return {"image": url} for the first image matching q.

    Declared sync so FastAPI runs it in the threadpool: the search client blocks.
    """
    normalized = normalizers.normalize_image_search(q)
    query = normalized.payload["query"]
    logger.info("GET /image/search q=%r", query)

    try:
        url = request.app.state.image_search.search(query)
    except ImageSearchError as e:
        return unknown_error_response(e.message, error="Image search failed")
    if url is None:
        return JSONResponse(status_code=404, content={"error": "No images found"})
    return {"image": url}


@router.get("/chat/history")
def chat_history(request: Request):
    """Every history entry, oldest first. 500 if the log cannot be read."""
    try:
        entries = request.app.state.history.read_all()
    except Exception as e:
        logger.error("Error retrieving history: %s", e, exc_info=True)
        return unknown_error_response(str(e), error="Failed to read history")
    return [entry.model_dump() for entry in entries]


# =============================================================================
# ERROR HANDLERS
# =============================================================================

async def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return error_response(exc)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s invalid body: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
    )


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error in %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return unknown_error_response(str(exc))


# =============================================================================
# APP FACTORY
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    image_search: Optional[Any] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        settings: Configuration; loaded from the environment when omitted.
        transport: httpx transport for the provider client (tests use MockTransport).
        image_search: Object with search(query) -> Optional[str]; defaults to Tavily.
    """
    settings = settings or load_settings()
    logger.setLevel(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info("Multi-modal gateway starting")
        logger.info("    - Provider: %s", settings.provider_base_url)
        logger.info("    - History log: %s", settings.history_file)
        logger.info("    - Listening on: %s:%s", settings.host, settings.port)
        logger.info("=" * 60)
        yield
        await app.state.provider.aclose()
        logger.info("Gateway stopped")

    app = FastAPI(
        title="Multi-Modal Gateway",
        description="Chat, document, image and speech gateway for a generative-AI provider",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.provider = ProviderClient(settings, transport=transport)
    app.state.history = HistoryLog(settings.history_file)
    app.state.image_search = image_search if image_search is not None else ImageSearchService(settings)

    # Any origin may call the gateway (browser frontends on other ports).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GatewayError, _gateway_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
    app.include_router(router)
    return app


app = create_app()


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m gateway.main)
# -------------------------------------------------------------------------
def run():
    """Start the uvicorn server (same as run.py)."""
    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    run()
