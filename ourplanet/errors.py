# ourplanet/errors.py

from typing import Any


class EOError(Exception):
    """Base class for everything the EONET client raises."""


class InvalidURL(EOError):
    def __init__(self, endpoint: str):
        super().__init__(f"Invalid URL for endpoint {endpoint!r}")
        self.endpoint = endpoint


class InvalidParameter(EOError):
    def __init__(self, name: str, value: Any):
        super().__init__(f"Query parameter {name!r} cannot be encoded: {value!r}")
        self.name = name
        self.value = value


class InvalidJSON(EOError):
    def __init__(self, where: str):
        super().__init__(f"Unexpected JSON from {where}")
        self.where = where


class ParseError(InvalidJSON):
    """A single record failed validation; callers drop it and keep going."""

    def __init__(self, kind: str, reason: str):
        super().__init__(kind)
        self.args = (f"Bad {kind} record: {reason}",)
        self.reason = reason
