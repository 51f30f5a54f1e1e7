"""Page retrieval: direct request first, then fallback channels in order."""

import logging
from collections.abc import Sequence

import requests

from stockwatch.errors import (
    AllChannelsExhausted,
    FetchContentInvalid,
    FetchError,
    FetchHttpError,
    FetchTimeout,
)
from stockwatch.fetchers.browser import fetch_with_browser
from stockwatch.fetchers.channels import BROWSER, ChannelConfig

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ContentFetcher:
    """
    Retrieve raw HTML for a product page.

    The direct request is tried first. When it fails, each channel is tried
    one after the other (never concurrently) until one returns a payload of at
    least min_content_length characters.
    """

    def __init__(
        self,
        channels: Sequence[ChannelConfig] = (),
        direct_timeout: float = 10.0,
        min_content_length: int = 100,
        session: requests.Session | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.channels = list(channels)
        self.direct_timeout = direct_timeout
        self.min_content_length = min_content_length
        self.session = session or requests.Session()
        self.headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    def fetch(self, url: str) -> str:
        """Return page HTML or raise a FetchError subclass."""
        attempted = ["direct"]
        try:
            return self._get(url, self.direct_timeout)
        except FetchError as e:
            last_error: FetchError = e
            logger.info("Direct fetch failed for %s: %s", url, e)

        for channel in self.channels:
            attempted.append(channel.name)
            try:
                html = self._fetch_channel(channel, url)
            except FetchError as e:
                last_error = e
                logger.info("Channel %s failed for %s: %s", channel.name, url, e)
                continue
            logger.info("Channel %s returned %d chars for %s", channel.name, len(html), url)
            return html

        raise AllChannelsExhausted(last_error, attempted) from last_error

    def _get(self, url: str, timeout: float) -> str:
        try:
            resp = self.session.get(url, headers=self.headers, timeout=timeout)
        except requests.Timeout as e:
            raise FetchTimeout(f"timed out after {timeout:.0f}s") from e
        except requests.RequestException as e:
            raise FetchError(str(e)) from e
        if not 200 <= resp.status_code < 300:
            raise FetchHttpError(resp.status_code)
        return resp.text

    def _fetch_channel(self, channel: ChannelConfig, url: str) -> str:
        if channel.kind == BROWSER:
            html = fetch_with_browser(url, self.headers["User-Agent"], timeout=channel.timeout)
        else:
            html = self._fetch_proxy(channel, url)

        if len(html) < self.min_content_length:
            raise FetchContentInvalid(
                f"{channel.name} returned {len(html)} chars (minimum {self.min_content_length})"
            )
        return html

    def _fetch_proxy(self, channel: ChannelConfig, url: str) -> str:
        logger.debug("Trying channel %s for %s", channel.name, url)
        try:
            resp = self.session.get(
                channel.build_url(url), headers=self.headers, timeout=channel.timeout
            )
        except requests.Timeout as e:
            raise FetchTimeout(f"{channel.name} timed out after {channel.timeout:.0f}s") from e
        except requests.RequestException as e:
            raise FetchError(f"{channel.name}: {e}") from e
        if not 200 <= resp.status_code < 300:
            raise FetchHttpError(resp.status_code, f"{channel.name}: HTTP {resp.status_code}")

        if channel.unwrap_key is None:
            return resp.text
        try:
            html = resp.json().get(channel.unwrap_key)
        except (ValueError, AttributeError) as e:
            raise FetchContentInvalid(f"{channel.name}: unreadable wrapped response") from e
        if not isinstance(html, str):
            raise FetchContentInvalid(f"{channel.name}: no '{channel.unwrap_key}' in response")
        return html
