import json
import traceback

class ScreenerError(Exception):
    """Base exception for sectorscreen"""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

class ValidationError(ScreenerError):
    """Input validation errors"""
    pass

class ProviderError(ScreenerError):
    """External provider errors"""
    pass

class UpstreamUnavailable(ProviderError):
    """Every symbol of a batch failed; nothing usable came back"""
    pass

class PartialDataError(ScreenerError):
    """One ticker payload is missing or malformed"""
    pass

class MissingFundamentalError(ScreenerError):
    """A period record cannot be used as a fundamentals point"""
    pass

class CacheUnavailable(ScreenerError):
    """Cache storage could not be read or written"""
    pass

class UnknownError(ScreenerError):
    """Unexpected errors"""
    pass

def format_error(e: Exception) -> str:
    """Format exception as the JSON error envelope."""

    if isinstance(e, ScreenerError):
        error_type = e.__class__.__name__
        message = e.message
        details = e.details
    else:
        error_type = "UnknownError"
        message = str(e)
        details = {
            "traceback": traceback.format_exc().splitlines()
        }

    payload = {
        "ok": False,
        "error": {
            "type": error_type,
            "message": message,
            "details": details
        },
        "meta": {
            "version": 1
        }
    }

    return json.dumps(payload, indent=2)
