"""Tests for the heuristic stock classifier."""

import pytest

from stockwatch.classifier import GENERIC_RULES, NO_INDICATORS, SITE_RULES, classify
from stockwatch.models import ClassificationResult, Confidence, StockStatus

SHOP_URL = "https://shop.example.com/products/matcha"


class TestSiteRules:
    """Retailer-specific rules win over generic phrases."""

    def test_amazon_unavailable_beats_add_to_cart(self):
        html = "<div id='availability'>Currently unavailable.</div><input value='Add to Cart'>"
        result = classify(html, "https://www.amazon.com/dp/B0000")
        assert result == ClassificationResult(False, Confidence.HIGH, ("amazon out of stock",))

    def test_amazon_add_to_cart(self):
        result = classify("<span>Add to Cart</span>", "https://www.amazon.co.jp/dp/B0000")
        assert result == ClassificationResult(True, Confidence.HIGH, ("amazon add to cart",))

    def test_site_negative_beats_generic_positive(self):
        html = "<p>Notify me when available</p><p>In stock at our sister store</p>"
        result = classify(html, "https://www.encha.com/products/latte-grade")
        assert result.is_in_stock is False
        assert result.confidence is Confidence.HIGH
        assert result.evidence_phrases == ("encha sold out",)

    def test_ippodo_japanese_sold_out(self):
        result = classify("<p>完売しました</p>", "https://global.ippodo-tea.co.jp/products/sayaka")
        assert result.evidence_phrases == ("ippodo sold out",)
        assert result.is_in_stock is False

    def test_ippodo_cart(self):
        result = classify("<a href='/cart'>View</a>", "https://ippodotea.com/products/ummon")
        assert result == ClassificationResult(True, Confidence.HIGH, ("ippodo add to cart",))

    def test_site_rules_ignore_other_hosts(self):
        # "cart" alone only counts on ippodo
        result = classify("<a href='/cart'>View</a>", SHOP_URL)
        assert result.evidence_phrases != ("ippodo add to cart",)

    def test_host_match_uses_hostname_not_path(self):
        result = classify("<p>Currently unavailable</p>", "https://shop.example.com/amazon.html")
        assert result.evidence_phrases == ("currently unavailable",)

    def test_site_without_own_signal_falls_through_to_generic(self):
        result = classify("<p>Ready to ship</p>", "https://www.amazon.com/dp/B0000")
        assert result == ClassificationResult(True, Confidence.HIGH, ("ready to ship",))


class TestGenericTiers:
    def test_negative_wins_tie_at_high_tier(self):
        html = "<button disabled>Add to Cart</button><span>Sold Out</span>"
        result = classify(html, SHOP_URL)
        assert result == ClassificationResult(False, Confidence.HIGH, ("sold out",))

    def test_high_positive(self):
        result = classify("<button>Add to Bag</button>", SHOP_URL)
        assert result == ClassificationResult(True, Confidence.HIGH, ("add to bag",))

    def test_first_phrase_in_list_order_is_evidence(self):
        # both present; "out of stock" is listed before "join waitlist"
        result = classify("<p>Join waitlist</p><p>Out of stock</p>", SHOP_URL)
        assert result.evidence_phrases == ("out of stock",)

    def test_matching_is_case_insensitive(self):
        assert classify("<P>SOLD OUT</P>", SHOP_URL).evidence_phrases == ("sold out",)

    def test_localized_negative(self):
        result = classify("<span>在庫切れ</span>", SHOP_URL)
        assert result == ClassificationResult(False, Confidence.HIGH, ("在庫切れ",))

    def test_medium_negative(self):
        result = classify("<p>Coming soon</p>", SHOP_URL)
        assert result == ClassificationResult(False, Confidence.MEDIUM, ("coming soon",))

    def test_medium_negative_beats_medium_positive(self):
        result = classify("<p>Unavailable in your region</p>", SHOP_URL)
        assert result == ClassificationResult(False, Confidence.MEDIUM, ("unavailable",))

    def test_medium_positive(self):
        result = classify("<button>Select options</button>", SHOP_URL)
        assert result == ClassificationResult(True, Confidence.MEDIUM, ("select options",))

    def test_high_positive_beats_medium_negative(self):
        result = classify("<p>Pre-order the next harvest</p><button>Buy now</button>", SHOP_URL)
        assert result == ClassificationResult(True, Confidence.HIGH, ("buy now",))

    def test_footer_furniture_still_counts(self):
        # plain substring matching is not tag-aware
        html = (
            "<main><button>Add to cart</button></main>"
            "<footer>This plan is no longer available for new customers</footer>"
        )
        result = classify(html, SHOP_URL)
        assert result.is_in_stock is False
        assert result.evidence_phrases == ("no longer available",)


class TestStructuralFallback:
    def test_price_only(self):
        result = classify("<h1>Matcha</h1><p>€24,50</p>", SHOP_URL)
        assert result == ClassificationResult(True, Confidence.MEDIUM, ("price found",))

    @pytest.mark.parametrize("price", ["$28.00", "£19", "¥3240", "￥3240", "₹999"])
    def test_currency_symbols(self, price):
        assert classify(f"<p>{price}</p>", SHOP_URL).evidence_phrases == ("price found",)

    def test_quantity_form(self):
        html = "<form action='/cart/add'><input name='qty' value='1'></form>"
        result = classify(html, SHOP_URL)
        assert result == ClassificationResult(True, Confidence.MEDIUM, ("quantity form found",))

    def test_quantity_outside_form_is_ignored(self):
        html = "<form action='/search'><input name='q'></form><p>Quantity discounts</p>"
        assert classify(html, SHOP_URL).evidence_phrases == (NO_INDICATORS,)

    def test_quantity_wording_without_quantity_field(self):
        html = (
            "<form action='/newsletter'><label>Ask about quantity discounts</label>"
            "<input name='email'></form>"
        )
        assert classify(html, SHOP_URL).evidence_phrases == (NO_INDICATORS,)

    def test_quantity_select_inside_form(self):
        html = "<form action='/cart/add'><select name='Quantity'><option>1</option></select></form>"
        assert classify(html, SHOP_URL).evidence_phrases == ("quantity form found",)

    def test_cart_control_markup(self):
        result = classify("<div id='add-to-cart-button'></div>", SHOP_URL)
        assert result == ClassificationResult(True, Confidence.MEDIUM, ("cart button found",))

    def test_unquoted_cart_control_attribute(self):
        result = classify("<button class=add-to-cart type=submit></button>", SHOP_URL)
        assert result == ClassificationResult(True, Confidence.MEDIUM, ("cart button found",))

    def test_shopify_add_button(self):
        html = "<button type='submit' name='add' class='product-form__submit'></button>"
        assert classify(html, SHOP_URL).evidence_phrases == ("cart button found",)

    def test_cart_link_href_is_not_a_control(self):
        assert classify("<a href='/cart/add-to-cart'>View</a>", SHOP_URL).evidence_phrases == (
            NO_INDICATORS,
        )

    def test_all_signals_listed_in_order(self):
        html = (
            "<p>$12</p><form><input name='quantity'></form>"
            "<div class='product-form__add_to_cart'></div>"
        )
        result = classify(html, SHOP_URL)
        assert result.evidence_phrases == ("price found", "quantity form found", "cart button found")


class TestDefault:
    @pytest.mark.parametrize("content", ["", "   \n\t", None, b"<html>sold out</html>"])
    def test_empty_or_non_text_input(self, content):
        result = classify(content, SHOP_URL)
        assert result == ClassificationResult(False, Confidence.LOW, (NO_INDICATORS,))
        assert result.status is StockStatus.OUT_OF_STOCK

    def test_no_signals(self):
        result = classify("<html><body><h1>About our tea farm</h1></body></html>", SHOP_URL)
        assert result == ClassificationResult(False, Confidence.LOW, ("no indicators",))


class TestProperties:
    PAGES = [
        "",
        "<p>Sold out</p>",
        "<p>Add to cart</p>",
        "<p>Coming soon</p>",
        "<p>Available</p>",
        "<p>$5</p>",
        "<p>hello</p>",
        "<p>Currently unavailable</p><p>Add to cart</p>",
    ]
    URLS = [SHOP_URL, "https://www.amazon.com/dp/X", "https://www.encha.com/p", "https://ippodo-tea.co.jp/x", "not a url"]

    def test_confidence_and_evidence_invariants(self):
        for page in self.PAGES:
            for url in self.URLS:
                result = classify(page, url)
                assert result.confidence in set(Confidence)
                assert result.evidence_phrases, (page, url)

    def test_deterministic(self):
        for page in self.PAGES:
            for url in self.URLS:
                assert classify(page, url) == classify(page, url)

    def test_rules_are_ordered_negative_first_per_tier(self):
        tiers = [(r.confidence, r.in_stock) for r in GENERIC_RULES]
        assert tiers == [
            (Confidence.HIGH, False),
            (Confidence.HIGH, True),
            (Confidence.MEDIUM, False),
            (Confidence.MEDIUM, True),
        ]
        assert all(r.hosts and r.label and r.confidence is Confidence.HIGH for r in SITE_RULES)
