"""Brazilian date formatting helpers."""
from datetime import date, datetime
from typing import Optional, Union


def format_date(value: Optional[Union[date, datetime]]) -> str:
    """dd/mm/yyyy"""
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")


def format_datetime(value: Optional[datetime]) -> str:
    """dd/mm/yyyy às HH:MM"""
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y às %H:%M")


def iso_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def iso_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None
