"""Validation utilities for verification evidence."""
import ipaddress
import math
from datetime import datetime
from typing import Any, Dict, List

from smart_attendance.utils.errors import InvalidEvidence

class Validator:
    """Validation helper class."""

    @staticmethod
    def require_fields(data: Dict, required_fields: List[str]) -> None:
        """Raise InvalidEvidence for the first missing field."""
        for field in required_fields:
            if field not in data or data[field] in (None, ''):
                raise InvalidEvidence(f"Missing required field: {field}", field=field)

    @staticmethod
    def ipv4(value: Any, field: str = 'ip_address') -> str:
        """Return a dotted-quad IPv4 address or raise InvalidEvidence."""
        try:
            return str(ipaddress.IPv4Address(str(value).strip()))
        except ValueError:
            raise InvalidEvidence(f"Invalid IPv4 address: {value}", field=field)

    @staticmethod
    def number(value: Any, field: str, minimum: float = None, maximum: float = None) -> float:
        """Coerce to float and check bounds."""
        if isinstance(value, bool):
            raise InvalidEvidence(f"{field} must be a number", field=field)
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidEvidence(f"{field} must be a number", field=field)

        if not math.isfinite(number):
            raise InvalidEvidence(f"{field} must be a number", field=field)
        if minimum is not None and number < minimum:
            raise InvalidEvidence(f"{field} must be >= {minimum}", field=field)
        if maximum is not None and number > maximum:
            raise InvalidEvidence(f"{field} must be <= {maximum}", field=field)

        return number

    @staticmethod
    def json_body(data: Any) -> Dict:
        """Request bodies must be JSON objects."""
        if not isinstance(data, dict):
            raise InvalidEvidence("Request body must be a JSON object", field='body')
        return data

    @staticmethod
    def integer(value: Any, field: str) -> int:
        """Coerce an id-like value to int."""
        if isinstance(value, bool):
            raise InvalidEvidence(f"{field} must be an integer", field=field)
        try:
            return int(value)
        except (TypeError, ValueError):
            raise InvalidEvidence(f"{field} must be an integer", field=field)

    @staticmethod
    def iso_datetime(value: str, field: str) -> datetime:
        """Parse an ISO-8601 query parameter."""
        try:
            return datetime.fromisoformat(value)
        except (TypeError, ValueError):
            raise InvalidEvidence(f"{field} must be an ISO-8601 date", field=field)
