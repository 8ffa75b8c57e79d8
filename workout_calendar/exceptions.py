"""
Custom exceptions for the workout calendar engine.
Provides specific exception types for better error handling and recovery.
"""


class CalendarException(Exception):
    """Base exception for the workout calendar engine"""
    pass


class StorageException(CalendarException):
    """Raised when local persistence operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Storage {operation} failed: {details}")


class InvalidDateKeyException(CalendarException):
    """Raised when a string is not a canonical YYYY-MM-DD date key"""
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Invalid date key: {key!r}. Expected YYYY-MM-DD")


class FreeRestDayUnavailableException(CalendarException):
    """Raised when the weekly free rest day has already been used"""
    def __init__(self):
        super().__init__("Free rest day already used this week")
