"""
Error taxonomy for the channel scraper.

Fatal (propagate to main, exit 1):
- InvalidSourceUrl, SessionNotInitialized, PersistenceIOFailure

Absorbed at their boundary (logged, never propagated):
- ElementResolutionMiss (per selector candidate)
- ItemExtractionFailure (per card)
- SecondaryListingUnavailable (whole popular listing)
"""


class ScraperError(Exception):
    pass


class InvalidSourceUrl(ScraperError, ValueError):
    def __init__(self, url: str):
        super().__init__(f"Not a channel URL (expected /@handle, /channel/<id> or /c/<name>): {url!r}")
        self.url = url


class SessionNotInitialized(ScraperError, RuntimeError):
    def __init__(self, message: str = "Browser session not started; call start() first"):
        super().__init__(message)


class ElementResolutionMiss(ScraperError):
    def __init__(self, selector: str, reason: str = "not visible or empty"):
        super().__init__(f"{selector}: {reason}")
        self.selector = selector


class ItemExtractionFailure(ScraperError):
    pass


class SecondaryListingUnavailable(ScraperError):
    pass


class PersistenceIOFailure(ScraperError):
    def __init__(self, path, cause: Exception):
        super().__init__(f"Catalog write failed at {path}: {cause}")
        self.path = path
        self.cause = cause
