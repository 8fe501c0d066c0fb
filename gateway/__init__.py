"""
MULTI-MODAL GATEWAY PACKAGE
===========================

HTTP front for a generative-AI provider: chat, PDF/image/document uploads,
speech synthesis, image generation and image search, plus an interaction log.

  from gateway.main import app, create_app
  from gateway.models import NormalizedRequest, ProviderResult

FILE STRUCTURE:
  gateway/
    __init__.py   - This file; marks 'gateway' as a package.
    main.py       - FastAPI app factory, lifespan and all HTTP endpoints.
    models.py     - Pydantic models and result types shared by the services.
    errors.py     - Local error types (validation, extraction, image search, history).
    services/     - Normalizers, extractor, provider client, relay, history log, image search.
    utils/        - Helpers: retry with backoff, ISO-8601 timestamps.
"""
