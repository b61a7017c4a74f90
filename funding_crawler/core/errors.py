"""Exception hierarchy for the funding crawler."""


class CrawlerError(Exception):
    """Base class for crawler errors."""


class ConfigError(CrawlerError):
    """Invalid site configuration."""


class NavigationError(CrawlerError):
    """Every navigation strategy failed for a URL."""

    def __init__(self, url: str, attempts: list[str]):
        self.url = url
        self.attempts = attempts
        super().__init__(f"Navigation failed for {url} after {len(attempts)} attempts: {'; '.join(attempts)}")
