"""Utility functions for common operations across the application."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union


class ValidationUtils:
    """Data validation utility functions."""

    @staticmethod
    def is_empty_equivalent(value: Any) -> bool:
        """
        Check if a property value carries no information.

        None, empty strings and numeric zero are empty. Booleans are never
        considered empty.

        Example:
            >>> ValidationUtils.is_empty_equivalent("")
            True
            >>> ValidationUtils.is_empty_equivalent(0)
            True
            >>> ValidationUtils.is_empty_equivalent(4)
            False
        """
        if value is None:
            return True
        if isinstance(value, bool):
            return False
        if isinstance(value, str):
            return value == ""
        if isinstance(value, (int, float)):
            return value == 0
        return False


class DateTimeUtils:
    """Date and time utility functions."""

    EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

    @staticmethod
    def as_utc(dt: datetime) -> datetime:
        """
        Return dt in UTC, treating naive datetimes as already being UTC.

        AMQP timestamps carry no zone and are decoded as naive datetimes.
        """
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def is_zero_timestamp(value: Optional[Union[datetime, int, float]]) -> bool:
        """
        Check whether a message timestamp is unset.

        Example:
            >>> DateTimeUtils.is_zero_timestamp(None)
            True
            >>> DateTimeUtils.is_zero_timestamp(datetime(1970, 1, 1))
            True
        """
        if value is None:
            return True
        if isinstance(value, datetime):
            return DateTimeUtils.as_utc(value) == DateTimeUtils.EPOCH
        return value == 0

    @staticmethod
    def format_message_timestamp(value: Union[datetime, int, float]) -> str:
        """
        Format a message timestamp as a human-readable UTC string.

        Args:
            value: Datetime or Unix timestamp in seconds

        Returns:
            Timestamp string such as '2024-01-01 12:00:00 +0000 UTC'

        Example:
            >>> DateTimeUtils.format_message_timestamp(1704110400)
            '2024-01-01 12:00:00 +0000 UTC'
        """
        if isinstance(value, datetime):
            dt = DateTimeUtils.as_utc(value)
        else:
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        return dt.strftime("%Y-%m-%d %H:%M:%S +0000 UTC")

    @staticmethod
    def format_expiration(value: Union[str, int, float, timedelta, datetime]) -> str:
        """
        Render a message expiration the way AMQP carries it: milliseconds as a string.

        Client libraries decode the wire value into seconds (float or
        timedelta); strings are passed through untouched.

        Example:
            >>> DateTimeUtils.format_expiration(60.0)
            '60000'
            >>> DateTimeUtils.format_expiration("1500")
            '1500'
        """
        if isinstance(value, str):
            return value
        if isinstance(value, datetime):
            remaining = DateTimeUtils.as_utc(value) - datetime.now(timezone.utc)
            return str(max(int(remaining.total_seconds() * 1000), 0))
        if isinstance(value, timedelta):
            return str(int(value.total_seconds() * 1000))
        return str(int(round(value * 1000)))
