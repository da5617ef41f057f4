class InvalidTableReference(Exception):
    """Raised when a table id is not defined in the dashboard config."""


class InvalidDimensionReference(Exception):
    """Raised when a dimension id cannot be resolved to a table."""
