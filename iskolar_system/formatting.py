from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from django.utils import timezone


def to_decimal(value, default=Decimal('0')):
    if value is None or value == '':
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def format_peso(value):
    """Format an amount as Philippine pesos, e.g. ₱1,234.50 or -₱200.00"""
    amount = to_decimal(value).quantize(Decimal('0.01'))
    sign = '-' if amount < 0 else ''
    return f'{sign}₱{abs(amount):,.2f}'


def format_date(value):
    """Aug 15, 2023"""
    if value is None or value == '':
        return ''
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    if isinstance(value, datetime) and timezone.is_aware(value):
        value = timezone.localtime(value)
    return f'{value:%b} {value.day}, {value.year}'
