class AlreadyConverted(Exception):
    """Raised when an estimate that already produced an invoice is converted again."""
    pass


class RecomputeFailure(Exception):
    """Raised when a step of a balance recompute chain fails."""
    pass


class ConcurrencyConflict(Exception):
    """Raised when an aggregate row changed between its read and its versioned write."""
    pass
