"""
SERVICES PACKAGE
=================

Business logic lives here. The API layer (gateway.main) calls these services;
apart from relay, they don't touch HTTP responses.

MODULES:
    normalizers        - Inbound body/upload -> NormalizedRequest (one function per route).
    document_extractor - PDF/DOCX -> plain text.
    provider_client    - NormalizedRequest -> ProviderResult over httpx.
    relay              - ProviderResult / GatewayError -> HTTP response.
    history_log        - Append-only JSON log of chat/document interactions.
    image_search       - Tavily image lookup for GET /image/search.
"""
