"""Locale-aware formatting of amounts and billing dates.

Configuration:
    POWERLINK_LOCALE (default: en_PH) - determines currency, number and date formatting

Example:
    >>> from powerlink.services.locale_service import format_amount, format_period_date
    >>> format_amount(Decimal("11500"))
    '₱11,500.00'
    >>> format_period_date(date(2025, 1, 5))
    'Jan 5, 2025'
"""

import logging
from datetime import date
from decimal import Decimal

from babel import Locale, UnknownLocaleError
from babel.dates import format_date
from babel.numbers import format_currency, get_territory_currencies

from powerlink.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en_PH"
DEFAULT_CURRENCY = "PHP"

# Abbreviated month, day without padding, full year: "Jan 5, 2025"
PERIOD_DATE_PATTERN = "MMM d, y"


def get_locale() -> str:
    """Configured locale, falling back to en_PH when babel does not know it."""
    locale_str = get_settings().locale
    try:
        Locale.parse(locale_str)
        return locale_str
    except (UnknownLocaleError, ValueError) as e:
        logger.warning("Invalid locale '%s': %s. Falling back to '%s'", locale_str, e, DEFAULT_LOCALE)
        return DEFAULT_LOCALE


def get_currency_code(locale_str: str | None = None) -> str:
    """ISO 4217 currency of the locale's territory (PHP for en_PH)."""
    locale = Locale.parse(locale_str or get_locale())
    if locale.territory:
        currencies = get_territory_currencies(locale.territory)
        if currencies:
            return currencies[0]
    return DEFAULT_CURRENCY


def format_amount(amount: Decimal, locale_str: str | None = None) -> str:
    locale_str = locale_str or get_locale()
    return format_currency(amount, get_currency_code(locale_str), locale=locale_str)


def format_period_date(value: date, locale_str: str | None = None) -> str:
    return format_date(value, format=PERIOD_DATE_PATTERN, locale=locale_str or get_locale())


__all__ = [
    "DEFAULT_LOCALE",
    "format_amount",
    "format_period_date",
    "get_currency_code",
    "get_locale",
]
