class InvalidArgument(ValueError):
    """Raised when a caller hands the balance engine a missing group or member list."""
