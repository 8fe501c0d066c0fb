"""
RESPONSE RELAY & ERROR TRANSLATOR
=================================

Turns a ProviderResult (or a local GatewayError) into the HTTP response sent back
to the caller. Dispatches on the body tag chosen by the provider client and never
re-inspects payload types.

  success   + JsonBody    -> same status, same JSON
  success   + BinaryBody  -> same status, same bytes, audio content type, inline
  failure   + JsonBody    -> provider status, provider JSON verbatim
  failure   + BinaryBody  -> provider status, body decoded to UTF-8 text
                             (sent as JSON if the text is JSON)
  transport failure       -> 500 {"error": "Unknown error", "message": ...}
  local GatewayError      -> its status (400 for input problems) {"error": message}
"""

import json
from typing import Optional

from fastapi import Response
from fastapi.responses import JSONResponse

from config import SPEECH_FILENAME, SPEECH_MEDIA_TYPE
from gateway.errors import GatewayError
from gateway.models import BinaryBody, JsonBody, ProviderResult


def relay(result: ProviderResult) -> Response:
    body = result.body
    if isinstance(body, JsonBody):
        return JSONResponse(status_code=result.status_code, content=body.value)

    if result.ok:
        headers = {}
        if body.media_type == SPEECH_MEDIA_TYPE:
            headers["Content-Disposition"] = f'inline; filename="{SPEECH_FILENAME}"'
        return Response(
            content=body.content,
            status_code=result.status_code,
            media_type=body.media_type,
            headers=headers,
        )

    return _relay_binary_error(result.status_code, body)


def _relay_binary_error(status_code: int, body: BinaryBody) -> Response:
    # Errors from binary endpoints arrive as bytes wrapping JSON or plain text.
    text = body.content.decode("utf-8", errors="replace")
    try:
        parsed = json.loads(text)
    except ValueError:
        return Response(content=text, status_code=status_code, media_type="text/plain; charset=utf-8")
    return JSONResponse(status_code=status_code, content=parsed)


def error_response(error: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


def unknown_error_response(message: str, error: Optional[str] = None) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": error or "Unknown error", "message": message})
