"""
Date Formatting Utility

Converts UTC capture timestamps to the local date strings shown in
notification emails (e.g., "18/10/2026 14:30").
"""

from datetime import datetime, timezone
import pytz


def to_local_time(moment=None, tz_name='America/Argentina/Buenos_Aires'):
    """
    Convert a datetime (or an ISO-8601 string) to the given timezone.
    
    Args:
        moment (datetime or str, optional): Timestamp to convert, defaults to now.
            Naive datetimes are assumed to be UTC.
        tz_name (str): Timezone string (default: 'America/Argentina/Buenos_Aires')
    
    Returns:
        datetime: Timezone-aware datetime in tz_name
    
    Raises:
        ValueError: If moment is a string that is not valid ISO-8601
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif isinstance(moment, str):
        try:
            moment = datetime.fromisoformat(moment)
        except ValueError as e:
            raise ValueError(f"Invalid timestamp '{moment}'. Expected ISO-8601") from e
    
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    
    return moment.astimezone(pytz.timezone(tz_name))


def format_local_date(moment=None, tz_name='America/Argentina/Buenos_Aires', with_time=True):
    """
    Format a timestamp the way Argentine readers expect it (day first).
    
    Returns:
        str: "DD/MM/YYYY HH:MM", or "DD/MM/YYYY" when with_time is False
    """
    local = to_local_time(moment, tz_name)
    return local.strftime('%d/%m/%Y %H:%M' if with_time else '%d/%m/%Y')
