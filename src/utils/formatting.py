from __future__ import annotations

from decimal import Decimal

CURRENCY_SYMBOLS: dict[str, str] = {
    "RUB": "₽",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CNY": "¥",
    "JPY": "¥",
    "KRW": "₩",
    "THB": "฿",
    "VND": "₫",
}


def format_currency(value: Decimal) -> str:
    cents = value.quantize(Decimal("0.01"))
    return f"{cents:.2f}"


def currency_symbol(code: str) -> str:
    return CURRENCY_SYMBOLS.get(code.upper(), code)


def format_money(value: Decimal, currency: str, *, signed: bool = False) -> str:
    text = format_currency(value)
    if signed and value > 0:
        text = f"+{text}"
    return f"{text} {currency_symbol(currency)}"
