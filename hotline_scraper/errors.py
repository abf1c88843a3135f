"""Exception hierarchy for the Hotline Archive scraper."""


class ScraperError(Exception):
    """Base exception for known scraper failures."""


class ConfigError(ScraperError):
    """Raised when required configuration is missing or invalid."""


class NavigationError(ScraperError):
    """A single navigation, selection or extraction step failed or timed out.

    Local to the enclosing unit or document: the run continues with the next sibling.
    """


class AuthenticationError(ScraperError):
    """Session could not be established. Fatal to the run."""


class PersistenceError(ScraperError):
    """Checkpoint or output storage is unwritable or unreadable. Fatal to the run."""
