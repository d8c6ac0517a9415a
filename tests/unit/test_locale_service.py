"""Tests for locale-aware formatting."""

from datetime import date
from decimal import Decimal

from powerlink.config import reset_settings
from powerlink.services.locale_service import (
    DEFAULT_LOCALE,
    format_amount,
    format_period_date,
    get_currency_code,
    get_locale,
)


def test_period_date_format():
    assert format_period_date(date(2025, 1, 5), "en_PH") == "Jan 5, 2025"


def test_currency_follows_territory():
    assert get_currency_code("en_PH") == "PHP"
    assert get_currency_code("en_US") == "USD"


def test_format_amount_groups_thousands():
    assert "11,500.00" in format_amount(Decimal("11500"), "en_PH")


def test_invalid_locale_falls_back(monkeypatch):
    monkeypatch.setenv("POWERLINK_LOCALE", "xx_NOPE")
    reset_settings()
    try:
        assert get_locale() == DEFAULT_LOCALE
    finally:
        reset_settings()
