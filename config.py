"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all gateway settings: provider API key, listening port,
  history file location, and the per-capability defaults (model, prompt,
  max_tokens) that every payload normalizer reads from.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so API keys stay out of code).
  - Builds one Settings object via load_settings(); the app factory calls it once
    at startup and hands it to the services that need it.
  - Defines CAPABILITY_DEFAULTS: one table keyed by capability.
  - Defines the document action templates (analyze / translate / fix / default).

USAGE:
  settings = load_settings()
  defaults = CAPABILITY_DEFAULTS[Capability.VISION]
"""

import os
import logging
from pathlib import Path
from typing import Dict, NamedTuple, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from gateway.models import Capability


logger = logging.getLogger("GATEWAY")


# -----------------------------------------------------------------------------
# BASE PATH
# -----------------------------------------------------------------------------
# Points to the folder containing this file (the project root).
BASE_DIR = Path(__file__).parent

# The history log lives here unless HISTORY_FILE says otherwise.
DEFAULT_HISTORY_FILE = BASE_DIR / "database" / "chat_history.json"

# ============================================================================
# PROVIDER
# ============================================================================
# Any OpenAI-compatible API works; override OPENAI_BASE_URL to point elsewhere.
DEFAULT_PROVIDER_BASE_URL = "https://api.openai.com/v1"

# Fixed endpoint path per capability. PDF and document uploads end up as plain
# chat completions at the provider.
PROVIDER_ENDPOINTS: Dict[Capability, str] = {
    Capability.CHAT: "/chat/completions",
    Capability.VISION: "/chat/completions",
    Capability.PDF: "/chat/completions",
    Capability.DOCUMENT: "/chat/completions",
    Capability.SPEECH: "/audio/speech",
    Capability.IMAGE_GENERATION: "/images/generations",
}

# Capabilities whose successful response is audio bytes rather than JSON.
BINARY_CAPABILITIES = frozenset({Capability.SPEECH})
SPEECH_MEDIA_TYPE = "audio/mpeg"
SPEECH_FILENAME = "speech.mp3"


# ============================================================================
# SETTINGS
# ============================================================================

class Settings(BaseModel):
    """
    Process-wide configuration, read once at startup.

    The API key is not validated here: an empty key is sent as-is and the
    provider answers 401, which the gateway relays like any other provider error.
    """
    model_config = ConfigDict(frozen=True)

    openai_api_key: str = ""
    provider_base_url: str = DEFAULT_PROVIDER_BASE_URL
    host: str = "0.0.0.0"
    port: int = 3000
    history_file: Path = DEFAULT_HISTORY_FILE
    tavily_api_key: str = ""
    log_level: str = "INFO"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load .env (if present) and build a Settings object from the environment.

    Called once by create_app(); nothing else in the gateway reads os.environ.
    """
    load_dotenv(env_file)
    history_file = os.getenv("HISTORY_FILE", "").strip()
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
        provider_base_url=(os.getenv("OPENAI_BASE_URL", "").strip() or DEFAULT_PROVIDER_BASE_URL),
        host=os.getenv("HOST", "").strip() or "0.0.0.0",
        port=_int_env("PORT", 3000),
        history_file=Path(history_file) if history_file else DEFAULT_HISTORY_FILE,
        tavily_api_key=os.getenv("TAVILY_API_KEY", "").strip(),
        log_level=(os.getenv("LOG_LEVEL", "").strip() or "INFO").upper(),
    )


# ============================================================================
# CAPABILITY DEFAULTS
# ============================================================================
# One row per capability. Normalizers read from here and nowhere else, so a
# default is applied exactly once (at normalization time).

class CapabilityDefaults(NamedTuple):
    default_model: Optional[str]
    default_prompt: Optional[str]
    default_max_tokens: Optional[int]


CAPABILITY_DEFAULTS: Dict[Capability, CapabilityDefaults] = {
    Capability.CHAT: CapabilityDefaults("gpt-4o-mini", None, None),
    Capability.VISION: CapabilityDefaults("gpt-4o", "What is in this image?", 300),
    Capability.PDF: CapabilityDefaults("gpt-4o", "What is in this PDF document?", 300),
    Capability.DOCUMENT: CapabilityDefaults("gpt-4o-mini", None, 4000),
    Capability.SPEECH: CapabilityDefaults("tts-1", None, None),
    Capability.IMAGE_GENERATION: CapabilityDefaults("dall-e-3", None, None),
    Capability.IMAGE_SEARCH: CapabilityDefaults(None, None, None),
}

# Image generation body defaults (besides the model).
DEFAULT_IMAGE_COUNT = 1
DEFAULT_IMAGE_SIZE = "1024x1024"

# How many results to ask the image-search service for; only the first is returned.
IMAGE_SEARCH_MAX_RESULTS = 5

# ============================================================================
# DOCUMENT ACTIONS
# ============================================================================
# The document prompt is DOCUMENT_PREFIX + extracted text + instruction.
# Each action is (template, built-in default); "{instruction}" is replaced with
# the user's prompt if given, else with the built-in default.

DOCUMENT_PREFIX = "Document content:\n\n"
DEFAULT_DOCUMENT_ACTION = "default"

DOCUMENT_ACTIONS: Dict[str, tuple] = {
    "analyze": (
        "\n\nAnalyze the document above. {instruction}",
        "Describe its purpose, structure and key points.",
    ),
    "translate": (
        "\n\nTranslate the document above into {instruction}. Keep the original formatting.",
        "English",
    ),
    "fix": (
        "\n\nFix grammar, spelling and punctuation errors in the document above. {instruction}",
        "Return only the corrected text.",
    ),
    DEFAULT_DOCUMENT_ACTION: (
        "\n\n{instruction}",
        "Summarize the document above.",
    ),
}
