"""Exceptions raised by the sitemap pipeline and its collaborators."""


class InvalidRequestPath(ValueError):
    """The requested path is not a sitemap document path."""


class InvalidPageNumber(ValueError):
    """The requested sitemap page does not exist for the current data set."""


class UpstreamFetchFailure(RuntimeError):
    """The remote route query failed or returned an unusable response."""


class ConfigurationDefect(RuntimeError):
    """A required setting is missing or invalid."""
