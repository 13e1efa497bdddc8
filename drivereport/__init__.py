"""Driver report engine: ranked statistics, highlights and paginated scene listings."""

__version__ = "1.0.0"
