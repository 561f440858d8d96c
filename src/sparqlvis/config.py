from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    # Service settings
    SPARQLVIS_HOST: str = "0.0.0.0"
    SPARQLVIS_PORT: int = 5000
    CORS_ORIGINS: str = ""

    # Monitoring settings
    ENABLE_TRACING: bool = False
    LOG_LEVEL: str = "INFO"
    OTEL_SERVICE_NAME: str = "sparqlvis"

    # SPARQL relay settings
    DEFAULT_SPARQL_ENDPOINT: str = "https://sparql.metanetx.org/sparql"
    SPARQL_PROXY_TIMEOUT: float = 60.0
    SPARQL_PROXY_USER_AGENT: str = "sparqlvis-proxy/1.0"

    # Transformation settings
    EMPTY_CELL_VALUE: str = ""
    VEGA_CHART_HEIGHT: int = 400

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True
    )

settings = Settings()
