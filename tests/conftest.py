"""Shared test fixtures."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from stockwatch.models import StockStatus
from stockwatch.storage import ProductStore

IN_STOCK_PAGE = (
    "<html><body><h1>Ceremonial Matcha 30g</h1>"
    "<p>$28.00</p><button class='btn'>Add to Cart</button></body></html>"
)


@pytest.fixture
def store(tmp_path):
    """Empty SQLite product store in a temp directory."""
    s = ProductStore(tmp_path / "products.db")
    s.init_db()
    return s


@pytest.fixture
def make_product(store):
    """Add a product and optionally force its starting status."""
    counter = {"n": 0}

    def _make(status: StockStatus | None = None, url: str | None = None, name: str | None = None):
        counter["n"] += 1
        n = counter["n"]
        product = store.add_product(
            name or f"Matcha {n}",
            "Ippodo",
            url or f"https://shop.example.com/products/matcha-{n}",
        )
        if status is not None:
            store.update(product.id, status=status)
        return store.get_by_id(product.id)

    return _make


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fetcher():
    """Fetcher double whose fetch() returns an in-stock page by default."""
    f = MagicMock()
    f.fetch.return_value = IN_STOCK_PAGE
    return f


@pytest.fixture
def notifier():
    return MagicMock()
