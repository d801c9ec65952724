"""
Custom exceptions for Handy Custom filters
"""

from typing import Optional


class HandyCustomError(Exception):
    """Base exception for all filter client errors"""
    pass


class ConfigurationError(HandyCustomError):
    """Page markup or settings are missing something we need"""
    pass


class TransportError(HandyCustomError):
    """Request was rejected, timed out, or returned a non-JSON body"""
    def __init__(self, message: str, status_code: Optional[int] = None,
                 timed_out: bool = False, response_body: str = None):
        self.status_code = status_code
        self.timed_out = timed_out
        self.response_body = response_body
        super().__init__(message)


class ApplicationError(HandyCustomError):
    """admin-ajax answered with success: false"""
    def __init__(self, action: str, message: Optional[str] = None):
        self.action = action
        self.server_message = message
        super().__init__(f"{action} failed: {message or 'no message from server'}")


class MalformedResponseError(HandyCustomError):
    """Response claimed success but lacks the expected payload"""
    def __init__(self, action: str, reason: str):
        self.action = action
        self.reason = reason
        super().__init__(f"Malformed {action} response: {reason}")


class ToggleError(HandyCustomError):
    """Featured toggle request failed"""
    def __init__(self, post_id: int, message: str):
        self.post_id = post_id
        super().__init__(f"Toggle failed for post {post_id}: {message}")
