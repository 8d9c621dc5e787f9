"""
Utility modules for the registration monitor.
"""

from .date_formatter import to_local_time, format_local_date

__all__ = ['to_local_time', 'format_local_date']
