"""
IMAGE SEARCH SERVICE
====================

Backs GET /image/search. Runs a Tavily search with images enabled and returns
the first image URL. Unlike provider calls, the search is retried with backoff
(with_retry) so a transient rate limit doesn't fail the request outright.

If TAVILY_API_KEY is not set, tavily_client is None and search() raises
ImageSearchError; the route answers 500 with that message.
"""

import logging
from typing import Optional

from tavily import TavilyClient

from config import IMAGE_SEARCH_MAX_RESULTS, Settings
from gateway.errors import ImageSearchError
from gateway.utils.retry import with_retry

logger = logging.getLogger("GATEWAY")


class ImageSearchService:
    """Image lookup through Tavily. search() is blocking; call it from a threadpool."""

    def __init__(self, settings: Settings):
        if settings.tavily_api_key:
            self.tavily_client = TavilyClient(api_key=settings.tavily_api_key)
            logger.info("Tavily image search client initialized")
        else:
            self.tavily_client = None
            logger.warning("TAVILY_API_KEY not set. Image search will be unavailable.")

    def search(self, query: str) -> Optional[str]:
        """
        Return the URL of the first image found for query, or None if there are no
        image results. Raises ImageSearchError if the search could not be run.
        """
        if not self.tavily_client:
            raise ImageSearchError("Image search is not configured (TAVILY_API_KEY not set)")

        try:
            response = with_retry(
                lambda: self.tavily_client.search(
                    query=query,
                    search_depth="basic",
                    max_results=IMAGE_SEARCH_MAX_RESULTS,
                    include_images=True,
                    include_answer=False,
                    include_raw_content=False,
                ),
                max_retries=3,
                initial_delay=1.0,
            )
        except Exception as e:
            logger.error("Tavily image search failed for %r: %s", query, e)
            raise ImageSearchError(str(e)) from e

        for image in response.get("images") or []:
            # Plain URL strings, or {"url": ..., "description": ...} when descriptions are on.
            url = image.get("url") if isinstance(image, dict) else image
            if url:
                logger.info("Image search for %r -> %s", query, url)
                return url

        logger.warning("No image results for query: %s", query)
        return None
