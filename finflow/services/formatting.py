from finflow.config import CURRENCY_SYMBOL


def format_currency(amount: float) -> str:
    return f"{CURRENCY_SYMBOL}{amount:.2f}"


def format_percent(value: float, digits: int = 0) -> str:
    return f"{value:.{digits}f}%"
