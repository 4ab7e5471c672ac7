"""
DateTime Handler module for consistent date and time handling throughout the application.
"""
from datetime import datetime


class DateTimeHandler:
    """
    Centralized service for handling timestamps consistently throughout the application.
    """

    @classmethod
    def get_current_datetime(cls) -> datetime:
        """
        Get the current UTC datetime.

        MongoDB stores datetimes with millisecond precision, so microseconds are
        truncated to keep values identical before and after a round trip.

        Returns:
            Current UTC datetime
        """
        now = datetime.utcnow()
        return now.replace(microsecond=(now.microsecond // 1000) * 1000)

