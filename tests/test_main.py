"""Tests for the command line entry point and environment settings."""

from unittest.mock import patch

import pytest

from stockwatch import config
from stockwatch.main import main
from stockwatch.storage import ProductStore

URL = "https://www.encha.com/products/ceremonial-matcha"
SOLD_OUT_PAGE = "<html><body><p>Sold out</p></body></html>"


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "cli.db"
    monkeypatch.setenv("DB_PATH", str(path))
    return path


class TestConfig:
    def test_defaults(self, monkeypatch):
        for name in ("CHECK_INTERVAL_MINUTES", "SWEEP_PACING_SECONDS", "WARMUP_DELAY_SECONDS",
                     "MIN_CONTENT_LENGTH", "BROWSER_FALLBACK", "STOCKWATCH_CHANNELS_FILE"):
            monkeypatch.delenv(name, raising=False)
        assert config.get_check_interval_minutes() == 30
        assert config.get_pacing_seconds() == 3.0
        assert config.get_warmup_seconds() == 10.0
        assert config.get_min_content_length() == 100
        assert config.use_browser_fallback() is False
        assert config.get_channels_file() is None

    def test_bad_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("CHECK_INTERVAL_MINUTES", "often")
        monkeypatch.setenv("SWEEP_PACING_SECONDS", "2.5")
        monkeypatch.setenv("BROWSER_FALLBACK", "yes")
        assert config.get_check_interval_minutes() == 30
        assert config.get_pacing_seconds() == 2.5
        assert config.use_browser_fallback() is True


class TestCli:
    def test_add_list_remove(self, db_path, capsys):
        assert main(["add", "Ceremonial", "Encha", URL]) == 0
        assert "Added product 1" in capsys.readouterr().out

        assert main(["add", "Ceremonial", "Encha", URL]) == 1
        assert "already tracking" in capsys.readouterr().err

        assert main(["list"]) == 0
        out = capsys.readouterr().out
        assert "[1] Ceremonial (Encha) checking" in out

        assert main(["remove", "1"]) == 0
        assert main(["remove", "1"]) == 1
        assert ProductStore(db_path).get_all() == []

    def test_check_all_and_history(self, db_path, capsys, monkeypatch):
        monkeypatch.setenv("SWEEP_PACING_SECONDS", "0")
        main(["add", "Ceremonial", "Encha", URL])
        with patch("stockwatch.fetchers.content.ContentFetcher.fetch", return_value=SOLD_OUT_PAGE):
            assert main(["check-all"]) == 0
        assert "1 checked: 0 in stock, 1 out of stock" in capsys.readouterr().out

        assert main(["history", "1"]) == 0
        assert "encha sold out" in capsys.readouterr().out

        assert main(["stats"]) == 0
        assert "out-of-stock  1" in capsys.readouterr().out

    def test_check_missing_product(self, db_path, capsys):
        assert main(["check", "5"]) == 1
        assert "not found" in capsys.readouterr().err
