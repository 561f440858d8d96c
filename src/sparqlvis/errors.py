"""
Error types raised by the visualization pipeline and the SPARQL relay.
"""


class InvalidResultSetError(ValueError):
    """Raised when a payload does not have the SPARQL JSON results shape."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        detail = f"{path}: {message}" if path else message
        super().__init__(f"Invalid SPARQL result set - {detail}")


class InvalidEncodingError(ValueError):
    """Raised when a user-supplied encoding references unknown marks or fields."""


class SparqlRelayError(RuntimeError):
    """Raised when an endpoint rejected the query for both POST and GET."""

    def __init__(self, endpoint: str, post_error: str, get_error: str):
        self.endpoint = endpoint
        self.post_error = post_error
        self.get_error = get_error
        super().__init__(
            f"Proxy failed for both POST and GET requests to {endpoint}. "
            f"POST error: {post_error}. GET error: {get_error}"
        )
