"""
User-facing messages for visualization outcomes.
"""


class StatusMessage:
    """Helper for creating consistent status messages."""

    @staticmethod
    def proxy_running() -> str:
        return "Proxy is running"

    @staticmethod
    def missing_parameters() -> str:
        return 'The "endpoint" and "query" parameters are required.'

    @staticmethod
    def no_data() -> str:
        return "No data to visualize. The query returned no results."

    @staticmethod
    def no_visualization() -> str:
        return "No SPARQL data available. Load a result set first."

    @staticmethod
    def invalid_result(detail: str) -> str:
        return f"The SPARQL response could not be visualized: {detail}"

    @staticmethod
    def invalid_encoding(detail: str) -> str:
        return f"Encoding rejected: {detail}"

    @staticmethod
    def relay_failed() -> str:
        return "Proxy failed for both POST and GET requests."
