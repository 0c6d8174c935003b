"""
Display formatting helpers for quotes and schedules.
"""
from decimal import Decimal, ROUND_HALF_UP


def format_currency(amount) -> str:
    """
    Format an amount as US dollars.

    Args:
        amount: Decimal/int/float or None

    Returns:
        String like "$1,234.50" ("$0.00" for None)
    """
    if amount is None:
        return '$0.00'
    value = Decimal(str(amount)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    if value < 0:
        return f'-${-value:,.2f}'
    return f'${value:,.2f}'


def format_drive_time(minutes) -> str:
    """Format a drive total as '45 min', '2 hr' or '1 hr 05 min' (empty when unset)."""
    if minutes is None:
        return ''
    hours, remainder = divmod(int(minutes), 60)
    if not hours:
        return f'{remainder} min'
    if not remainder:
        return f'{hours} hr'
    return f'{hours} hr {remainder:02d} min'


def format_clock(dt) -> str:
    """Format a datetime as 'HH:MM' (empty string when unset)."""
    if dt is None:
        return ''
    return dt.strftime('%H:%M')
