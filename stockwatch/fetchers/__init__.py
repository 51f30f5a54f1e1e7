"""Fetchers for product page content."""

from stockwatch.fetchers.channels import ChannelConfig, DEFAULT_CHANNELS, load_channels
from stockwatch.fetchers.content import ContentFetcher

__all__ = ["ChannelConfig", "ContentFetcher", "DEFAULT_CHANNELS", "load_channels"]
