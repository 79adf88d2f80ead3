def format_price(cents: int) -> str:
    """Render an amount in centavos the way pt-BR shows BRL, e.g. ``R$ 1.234,56``."""
    cents = cents or 0
    sign = "-" if cents < 0 else ""
    amount = f"{abs(cents) / 100:,.2f}"
    # swap en-US separators for pt-BR ones
    amount = amount.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {amount}"
