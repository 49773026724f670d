"""Thumbnail resolution from Open Graph metadata."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

import httpx
import lxml.html
from lxml import etree

from .errors import ThumbnailError

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = ("jpg", "jpeg", "png", "webp")

OG_IMAGE_XPATH = '/html/head/meta[@property="og:image"]'


@dataclass
class HtmlDocument:
    """Parsed HTML page and the structural errors reported while parsing it."""

    root: Optional[lxml.html.HtmlElement]
    errors: List[str] = field(default_factory=list)


def parse_html(content: Union[str, bytes]) -> HtmlDocument:
    """Parse a page; parser failures are reported as errors, never raised."""
    parser = lxml.html.HTMLParser(recover=True)
    try:
        root = lxml.html.document_fromstring(content, parser=parser)
    except (etree.ParserError, ValueError) as e:
        return HtmlDocument(root=None, errors=[str(e)])

    errors = [
        f"{entry.line}:{entry.column}: {entry.message}"
        for entry in parser.error_log
        # libxml2 does not know HTML5 elements; those are not structural errors
        if entry.level >= etree.ErrorLevels.ERROR and entry.type != etree.ErrorTypes.HTML_UNKNOWN_TAG
    ]
    return HtmlDocument(root=root, errors=errors)


def is_image_candidate(content: Optional[str]) -> bool:
    """Whether an og:image value is a valid URI whose path has an image suffix."""
    if not content:
        return False
    try:
        url = httpx.URL(content)
    except httpx.InvalidURL:
        return False
    return url.path.endswith(IMAGE_SUFFIXES)


def select_image_candidates(document: HtmlDocument) -> List[str]:
    """Qualifying og:image values in document order."""
    if document.root is None:
        return []
    candidates = []
    for element in document.root.xpath(OG_IMAGE_XPATH):
        content = element.get("content")
        if is_image_candidate(content):
            candidates.append(content)
    return candidates


class ThumbnailResolver:
    """Fetch a page and pick its thumbnail image."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        """Initialize with the shared HTTP client."""
        self.client = client

    async def resolve_image(self, url: str) -> Optional[str]:
        """
        Resolve the thumbnail for the page at ``url``.

        Returns:
            The first qualifying og:image URL, or None when the page has none
            or cannot be parsed cleanly

        Raises:
            ThumbnailError: the page could not be fetched
        """
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise ThumbnailError(url, f"HTTP error: {e}") from e

        if response.is_error:
            logger.debug("Page %s returned HTTP %d", url, response.status_code)

        document = parse_html(response.content)
        if document.errors:
            logger.error("Html parse errors for %s: %s", url, document.errors)
            return None

        candidates = select_image_candidates(document)
        logger.debug("Found thumbnail candidates for %s: %s", url, candidates)
        return candidates[0] if candidates else None
