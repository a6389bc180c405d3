"""Custom exceptions for board lookups."""


class BoardError(Exception):
    """Base exception for board errors."""

    pass


class CityNotFoundError(BoardError):
    """Raised when a city id is not on the board."""

    pass


class MilepostNotFoundError(BoardError):
    """Raised when no milepost exists at a coordinate."""

    pass
