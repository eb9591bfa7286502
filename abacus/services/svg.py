from html import escape


def fmt(value: float) -> str:
    """Format a coordinate without a trailing `.0` and with at most 2 decimals."""

    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def attr(value: str) -> str:
    return escape(value, quote=True)
