"""
Gateway error types.

Local failures only. Provider failures are not exceptions: they come back as a
ProviderResult and the relay turns them into a response.
"""


class GatewayError(Exception):
    """Base exception for gateway errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(GatewayError):
    """Client input is missing or malformed."""

    status_code = 400


class UnsupportedFormatError(GatewayError):
    """Uploaded document has a MIME type the extractor cannot handle."""

    status_code = 400

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"Unsupported file type: {mime_type}")


class ExtractionError(GatewayError):
    """The PDF/DOCX library failed to read the upload."""

    status_code = 400


class ImageSearchError(GatewayError):
    """The image-search service is unavailable or failed."""

    status_code = 500


class HistoryWriteFailure(GatewayError):
    """Appending to the history log failed. Logged, never sent to the client."""
