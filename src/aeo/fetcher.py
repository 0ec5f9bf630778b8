"""Fetches a page's HTML and its site's robots.txt."""

import logging
from typing import Optional
from urllib.parse import urlparse

import requests

from aeo.constants import BROWSER_USER_AGENT, DEFAULT_REQUEST_TIMEOUT_SECONDS
from aeo.exceptions import FetchError
from aeo.models import RawPage

logger = logging.getLogger(__name__)


class PageFetcher:
    """Fetches the assets needed to audit one page."""

    def __init__(self, user_agent: Optional[str] = None):
        """Initialize the fetcher.

        Args:
            user_agent: Custom user agent string (browser UA if None)
        """
        self.user_agent = user_agent or BROWSER_USER_AGENT
        self.session = requests.Session()

        # Browser-like headers
        self.session.headers.update({
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Connection": "keep-alive",
        })

    def fetch(self, url: str, timeout: int = DEFAULT_REQUEST_TIMEOUT_SECONDS) -> RawPage:
        """Fetch page HTML and robots.txt.

        Args:
            url: Absolute page URL
            timeout: Request timeout in seconds

        Returns:
            RawPage; robots_txt is empty when robots.txt is unavailable

        Raises:
            FetchError: If the page HTML cannot be fetched
        """
        try:
            response = self.session.get(url, timeout=timeout, allow_redirects=True)
            response.raise_for_status()
        except requests.exceptions.Timeout:
            raise FetchError(url, f"Request timeout after {timeout}s")
        except requests.exceptions.RequestException as e:
            raise FetchError(url, str(e))

        return RawPage(html=response.text, url=url, robots_txt=self.fetch_robots(url, timeout))

    def fetch_robots(self, url: str, timeout: int = DEFAULT_REQUEST_TIMEOUT_SECONDS) -> str:
        """Fetch the site's robots.txt; optional, so failures return ''."""
        parsed = urlparse(url)
        robots_url = f"{parsed.scheme}://{parsed.netloc}/robots.txt"
        try:
            response = self.session.get(robots_url, timeout=timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.info(f"robots.txt unavailable at {robots_url}: {e}")
            return ""
        return response.text


def fetch_page_assets(
    url: str,
    timeout: int = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    user_agent: Optional[str] = None,
) -> RawPage:
    """Fetch a page and its robots.txt with a fresh PageFetcher."""
    return PageFetcher(user_agent=user_agent).fetch(url, timeout=timeout)
