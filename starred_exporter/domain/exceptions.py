from typing import Optional


class CrawlerException(Exception):
    """Base exception for all starred-repository export errors."""
    pass

class TransportException(CrawlerException):
    """Raised when the request fails before GitHub sends a response."""
    pass

class RemoteApiException(CrawlerException):
    """Raised when GitHub answers with a non-success status."""
    def __init__(self, status: int, message: str, documentation_url: Optional[str] = ""):
        self.status = status
        self.message = message
        self.documentation_url = documentation_url or ""
        super().__init__(f"failed to fetch starred repos: {message}")

class DecodeException(CrawlerException):
    """Raised when a response body does not match the expected shape."""
    pass

class SinkException(CrawlerException):
    """Raised when a page consumer fails to handle a page."""
    pass

class DatabaseException(SinkException):
    """Raised when a database operation fails."""
    pass
