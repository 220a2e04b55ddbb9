"""
Exception classes for the listing search engine.
"""


class ListingSearchError(Exception):
    """Base exception for all listing search errors."""
    pass


class StorageError(ListingSearchError):
    """Raised when storage operations fail."""
    pass


class QueryError(ListingSearchError):
    """Raised when a query cannot be compiled or executed."""
    pass


class ValidationError(ListingSearchError):
    """Raised when input validation fails."""
    pass


class FilterError(ListingSearchError):
    """Base exception for filter-related errors."""
    pass


class InvalidFilterError(FilterError):
    """Raised when a filter definition or clause is malformed."""
    pass


class UnsupportedOperatorError(FilterError):
    """Raised when a backend doesn't support a comparator."""
    def __init__(self, operator, backend: str):
        super().__init__(f"Operator {operator.value} is not supported by {backend}")
        self.operator = operator
        self.backend = backend
