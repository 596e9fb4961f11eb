from numeris.constants import CURRENCY_SYMBOLS, DEFAULT_CURRENCY


def format_money(amount: int, currency: str = DEFAULT_CURRENCY) -> str:
    """Format minor units for display: 123456 -> '$1,234.56'"""
    sign = "-" if amount < 0 else ""
    major, minor = divmod(abs(amount), 100)
    formatted = f"{major:,}.{minor:02d}"
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol is None:
        return f"{sign}{currency.upper()} {formatted}"
    return f"{sign}{symbol}{formatted}"
