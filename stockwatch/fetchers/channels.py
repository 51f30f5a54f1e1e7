"""Fallback retrieval channels used when a direct request fails."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

logger = logging.getLogger(__name__)

PROXY = "proxy"
BROWSER = "browser"


@dataclass(frozen=True)
class ChannelConfig:
    """
    One alternate way to obtain a page's HTML.

    url_template takes `{url}` (raw target url) or `{encoded_url}`
    (percent-encoded). unwrap_key names the JSON field holding the HTML when
    the channel wraps its response.
    """

    name: str
    url_template: str = "{url}"
    unwrap_key: str | None = None
    timeout: float = 15.0
    kind: str = PROXY

    def build_url(self, target_url: str) -> str:
        return self.url_template.format(
            url=target_url,
            encoded_url=quote(target_url, safe=""),
        )


DEFAULT_CHANNELS: tuple[ChannelConfig, ...] = (
    ChannelConfig(
        name="AllOrigins",
        url_template="https://api.allorigins.win/get?url={encoded_url}",
        unwrap_key="contents",
        timeout=20.0,
    ),
    ChannelConfig(name="CORS.sh", url_template="https://cors.sh/{url}", timeout=15.0),
    ChannelConfig(
        name="ThingProxy",
        url_template="https://thingproxy.freeboard.io/fetch/{url}",
        timeout=15.0,
    ),
    ChannelConfig(
        name="Proxify",
        url_template="https://api.proxify.io/?url={encoded_url}",
        unwrap_key="data",
        timeout=20.0,
    ),
)

BROWSER_CHANNEL = ChannelConfig(name="Browser", kind=BROWSER, timeout=60.0)


def load_channels(path: Path | None = None, browser_fallback: bool = False) -> list[ChannelConfig]:
    """
    Build the ordered channel list.

    Reads a JSON list of channel objects from path when given, otherwise uses
    the built-in proxies. The browser channel, when enabled, always goes last.
    """
    channels: list[ChannelConfig]
    if path is None:
        channels = list(DEFAULT_CHANNELS)
    else:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError(f"{path}: expected a JSON list of channels")
        channels = [ChannelConfig(**entry) for entry in raw]
        logger.info("Loaded %d fetch channels from %s", len(channels), path)

    if browser_fallback and not any(c.kind == BROWSER for c in channels):
        channels.append(BROWSER_CHANNEL)
    return channels
