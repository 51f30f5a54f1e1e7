"""
Heuristic stock classifier.

Turns raw page content into an in-stock/out-of-stock verdict with a
confidence tier and the phrases that produced it. Matching is lower-cased
substring search over the whole document, markup included, so a negative
phrase in unrelated page furniture (footer, cross-sell widgets) can still
decide the verdict.

Rule order:
  1. retailer rules for the URL's host (sold-out signals, then in-stock)
  2. generic high-confidence out-of-stock, then in-stock phrases
  3. generic medium-confidence out-of-stock, then in-stock phrases
  4. structural signals (prices, quantity forms, cart controls) -> in stock
  5. nothing found -> out of stock, low confidence
"""

import logging
import re
from dataclasses import dataclass
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from stockwatch.models import ClassificationResult, Confidence

logger = logging.getLogger(__name__)

NO_INDICATORS = "no indicators"


@dataclass(frozen=True)
class PhraseRule:
    """Ordered phrase set with the verdict it implies."""

    confidence: Confidence
    in_stock: bool
    phrases: tuple[str, ...]
    # Retailer rules only: evidence label and host substrings they apply to
    label: str | None = None
    hosts: tuple[str, ...] = ()

    def applies_to(self, host: str) -> bool:
        if not self.hosts:
            return True
        return any(pattern in host for pattern in self.hosts)

    def match(self, text: str) -> str | None:
        """Return the evidence for the first phrase found in text."""
        for phrase in self.phrases:
            if phrase in text:
                return self.label or phrase
        return None


_IPPODO = ("ippodo-tea.co.jp", "ippodotea.com")
_AMAZON = ("amazon.",)
_ENCHA = ("encha.com",)

SITE_RULES: tuple[PhraseRule, ...] = (
    PhraseRule(Confidence.HIGH, False, ("sold out", "完売", "品切れ"),
               label="ippodo sold out", hosts=_IPPODO),
    PhraseRule(Confidence.HIGH, True, ("add to cart", "カートに入れる", "cart"),
               label="ippodo add to cart", hosts=_IPPODO),
    PhraseRule(Confidence.HIGH, False,
               ("currently unavailable", "out of stock", "temporarily out of stock"),
               label="amazon out of stock", hosts=_AMAZON),
    PhraseRule(Confidence.HIGH, True, ("add to cart", "buy now", "add to basket"),
               label="amazon add to cart", hosts=_AMAZON),
    PhraseRule(Confidence.HIGH, False, ("sold out", "notify me when available"),
               label="encha sold out", hosts=_ENCHA),
    PhraseRule(Confidence.HIGH, True, ("add to cart",),
               label="encha add to cart", hosts=_ENCHA),
)

GENERIC_RULES: tuple[PhraseRule, ...] = (
    PhraseRule(Confidence.HIGH, False, (
        "out of stock",
        "sold out",
        "currently unavailable",
        "temporarily out of stock",
        "notify when available",
        "notify me when available",
        "email when available",
        "join waitlist",
        "join the waitlist",
        "add to waitlist",
        "back in stock notification",
        "no longer available",
        "discontinued",
        "out-of-stock",
        "soldout",
        "在庫切れ",
        "完売",
        "品切れ",
    )),
    PhraseRule(Confidence.HIGH, True, (
        "add to cart",
        "add to bag",
        "add to basket",
        "buy now",
        "buy it now",
        "purchase now",
        "order now",
        "in stock",
        "available now",
        "ready to ship",
        "ships today",
        "カートに入れる",
    )),
    PhraseRule(Confidence.MEDIUM, False, (
        "unavailable",
        "not available",
        "coming soon",
        "pre-order",
        "preorder",
        "backorder",
    )),
    PhraseRule(Confidence.MEDIUM, True, (
        "available",
        "select options",
        "choose options",
        "choose size",
        "select quantity",
        "shop now",
        "quick add",
        "add item",
    )),
)

_PRICE_RE = re.compile(r"[$€£¥￥₹]\s?\d")
_QUANTITY_FIELD_RE = re.compile(r"quantity|qty")
_CART_CONTROL_SELECTOR = ", ".join(
    f"[{attr}*='{token}']"
    for attr in ("class", "id", "name")
    for token in ("add-to-cart", "add_to_cart", "addtocart")
) + ", button[name='add'], input[name='add']"


def _host(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def _structural_signals(text: str) -> list[str]:
    """Names of the price/cart markup signals present in the page."""
    signals = []
    if _PRICE_RE.search(text):
        signals.append("price found")

    soup = BeautifulSoup(text, "html.parser")
    for form in soup.find_all("form"):
        if form.find(["input", "select"], attrs={"name": _QUANTITY_FIELD_RE}):
            signals.append("quantity form found")
            break
    if soup.select_one(_CART_CONTROL_SELECTOR) is not None:
        signals.append("cart button found")
    return signals


def classify(text: str, url: str) -> ClassificationResult:
    """
    Classify page content as in stock or out of stock.

    Out-of-stock phrases are checked before in-stock ones at every tier, so a
    page showing both a "sold out" label and a disabled "add to cart" button
    is out of stock. Without any signal the verdict is out of stock (low),
    which keeps missing evidence from raising restock alerts.
    """
    if not isinstance(text, str) or not text.strip():
        return ClassificationResult(False, Confidence.LOW, (NO_INDICATORS,))

    text = text.lower()
    host = _host(url)

    for rule in SITE_RULES + GENERIC_RULES:
        if not rule.applies_to(host):
            continue
        evidence = rule.match(text)
        if evidence is not None:
            logger.debug("Matched %r (%s) for %s", evidence, rule.confidence.value, url)
            return ClassificationResult(rule.in_stock, rule.confidence, (evidence,))

    signals = _structural_signals(text)
    if signals:
        return ClassificationResult(True, Confidence.MEDIUM, tuple(signals))

    return ClassificationResult(False, Confidence.LOW, (NO_INDICATORS,))
