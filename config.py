"""Configuration management for the Prism news synthesis pipeline.

This module provides centralized configuration for all pipeline components.
All settings are loaded from environment variables with sensible defaults.

Environment Variables:
    Sources:
        SOURCES_FILE: JSON file with additional/custom feed sources
        DEFAULT_SOURCES: Include the built-in source catalog (default: true)

    Parsing:
        FEED_PARSER: 'loose' (tolerant pattern parser) or 'strict' (feedparser)

    Fetching:
        REQUEST_TIMEOUT: Per-request timeout in seconds (default: 15)
        TOTAL_TIMEOUT: Total timeout per source in seconds (default: 30)
        MAX_CONNECTIONS: Maximum concurrent TCP connections (default: 10)

    NLP:
        NLP_BACKEND: 'heuristic' or 'spacy' entity/keyword extraction
        SPACY_MODEL: spaCy model name (default: en_core_web_sm)
        EMBEDDING_MODEL: sentence-transformers model ('' disables embeddings)
        SENTIMENT_MODEL: transformers sentiment model ('' disables sentiment)

    Clustering:
        CLUSTER_EMBEDDING_THRESHOLD: Cosine similarity cutoff (default: 0.6)
        CLUSTER_KEYWORD_THRESHOLD: Keyword overlap cutoff (default: 0.4)
        CLUSTER_WINDOW_HOURS: Max publication gap in a cluster (default: 48)

    Trends:
        TREND_INTERVAL_SECONDS: Minimum time between trend runs (default: 300)

    Pipeline Behavior:
        POLL_INTERVAL_SECONDS: Delay between runs in continuous mode

    Alerts:
        ALERT_KEYWORDS: Comma-separated keywords to watch
        NOTIFICATION_WEBHOOK_URL: HTTP endpoint for keyword alerts
        ALERTS_FILE: Path for JSONL alert file

    Optional Features:
        ENABLE_LOGFIRE: Enable Logfire/OpenTelemetry tracing

    Logging:
        LOG_DIR: Directory for log files
        LOG_LEVEL: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_BACKUP_COUNT: Number of rotated log files to keep
        LOG_MAX_BYTES: Max log file size in bytes (0 = time-based rotation)
        LOG_FORMAT: Log format ('text' or 'json' for structured logging)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from nlp.embeddings import MODEL_NAME as DEFAULT_EMBEDDING_MODEL


def _env(key: str, default: str = "") -> str:
    """Get string environment variable with optional default.

    Args:
        key: Environment variable name
        default: Value to return if not set

    Returns:
        Environment variable value or default
    """
    return os.environ.get(key, default)


def _env_int(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Raises:
        ValueError: If value is set but cannot be parsed as integer
    """
    val = os.environ.get(key)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"Invalid integer value for {key}: '{val}'")


def _env_float(key: str, default: float) -> float:
    """Get float environment variable with default.

    Raises:
        ValueError: If value is set but cannot be parsed as float
    """
    val = os.environ.get(key)
    if not val:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"Invalid float value for {key}: '{val}'")


def _env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable with default.

    Recognizes truthy values: '1', 'true', 'yes', 'on'
    Recognizes falsy values: '0', 'false', 'no', 'off'
    """
    val = os.environ.get(key, "").lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    return default


def _env_list(key: str) -> list[str]:
    """Get comma-separated list environment variable (empty items dropped)."""
    return [item.strip() for item in os.environ.get(key, "").split(",") if item.strip()]


@dataclass
class Config:
    """Application configuration loaded from environment variables.

    Use Config.load() to create an instance with values from the environment.

    Example:
        >>> config = Config.load()
        >>> if error := config.validate():
        ...     print(f"Config error: {error}")
    """

    # === Sources ===
    sources_file: Path | None = None  # SOURCES_FILE - Extra sources (JSON)
    use_default_sources: bool = True  # DEFAULT_SOURCES - Include built-in catalog

    # === Parsing ===
    feed_parser: str = "loose"  # FEED_PARSER - 'loose' or 'strict'

    # === Fetching ===
    request_timeout: float = 15.0  # REQUEST_TIMEOUT - Connect/read timeout
    total_timeout: float = 30.0  # TOTAL_TIMEOUT - Whole request timeout
    max_connections: int = 10  # MAX_CONNECTIONS - TCP connection pool size

    # === NLP ===
    nlp_backend: str = "heuristic"  # NLP_BACKEND - 'heuristic' or 'spacy'
    spacy_model: str = "en_core_web_sm"  # SPACY_MODEL
    embedding_model: str = DEFAULT_EMBEDDING_MODEL  # EMBEDDING_MODEL - '' disables
    sentiment_model: str = ""  # SENTIMENT_MODEL - '' disables sentiment

    # === Clustering ===
    cluster_embedding_threshold: float = 0.6  # CLUSTER_EMBEDDING_THRESHOLD
    cluster_keyword_threshold: float = 0.4  # CLUSTER_KEYWORD_THRESHOLD
    cluster_window_hours: float = 48.0  # CLUSTER_WINDOW_HOURS

    # === Trends ===
    trend_interval_seconds: int = 300  # TREND_INTERVAL_SECONDS

    # === Pipeline Behavior ===
    poll_interval_seconds: int = 300  # POLL_INTERVAL_SECONDS - Delay between runs

    # === Alerts ===
    alert_keywords: list[str] = field(default_factory=list)  # ALERT_KEYWORDS
    webhook_url: str = ""  # NOTIFICATION_WEBHOOK_URL - POST endpoint for alerts
    alerts_file: str = ""  # ALERTS_FILE - JSONL file path for alerts

    # === Logging Configuration ===
    log_dir: Path = field(default_factory=lambda: Path("log"))  # LOG_DIR
    log_level: str = "INFO"  # LOG_LEVEL - DEBUG, INFO, WARNING, ERROR
    log_backup_count: int = 30  # LOG_BACKUP_COUNT - Number of rotated logs to keep
    log_max_bytes: int = 0  # LOG_MAX_BYTES - Max file size (0 = time-based rotation)
    log_format: str = "text"  # LOG_FORMAT - 'text' or 'json' for structured logging

    # === Optional: Observability ===
    # Requires: pip install logfire
    enable_logfire: bool = False  # ENABLE_LOGFIRE - Enable distributed tracing
    logfire_token: str = ""  # LOGFIRE_TOKEN - Authentication token

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment variables."""
        sources_file = _env("SOURCES_FILE")
        return cls(
            sources_file=Path(sources_file) if sources_file else None,
            use_default_sources=_env_bool("DEFAULT_SOURCES", True),
            feed_parser=_env("FEED_PARSER", "loose").lower(),
            request_timeout=_env_float("REQUEST_TIMEOUT", 15.0),
            total_timeout=_env_float("TOTAL_TIMEOUT", 30.0),
            max_connections=_env_int("MAX_CONNECTIONS", 10),
            nlp_backend=_env("NLP_BACKEND", "heuristic").lower(),
            spacy_model=_env("SPACY_MODEL", "en_core_web_sm"),
            embedding_model=_env("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
            sentiment_model=_env("SENTIMENT_MODEL"),
            cluster_embedding_threshold=_env_float("CLUSTER_EMBEDDING_THRESHOLD", 0.6),
            cluster_keyword_threshold=_env_float("CLUSTER_KEYWORD_THRESHOLD", 0.4),
            cluster_window_hours=_env_float("CLUSTER_WINDOW_HOURS", 48.0),
            trend_interval_seconds=_env_int("TREND_INTERVAL_SECONDS", 300),
            poll_interval_seconds=_env_int("POLL_INTERVAL_SECONDS", 300),
            alert_keywords=_env_list("ALERT_KEYWORDS"),
            webhook_url=_env("NOTIFICATION_WEBHOOK_URL"),
            alerts_file=_env("ALERTS_FILE"),
            log_dir=Path(_env("LOG_DIR", "log")),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_backup_count=_env_int("LOG_BACKUP_COUNT", 30),
            log_max_bytes=_env_int("LOG_MAX_BYTES", 0),
            log_format=_env("LOG_FORMAT", "text").lower(),
            enable_logfire=_env_bool("ENABLE_LOGFIRE", False),
            logfire_token=_env("LOGFIRE_TOKEN"),
        )

    def validate(self) -> str | None:
        """Validate configuration values.

        Returns:
            Error message string if invalid, None if valid.
        """
        if not self.use_default_sources and self.sources_file is None:
            return "No sources configured: set SOURCES_FILE or DEFAULT_SOURCES=true"
        if self.sources_file is not None and not self.sources_file.is_file():
            return f"SOURCES_FILE '{self.sources_file}' does not exist"
        if self.feed_parser not in ("loose", "strict"):
            return f"Invalid FEED_PARSER '{self.feed_parser}' - must be 'loose' or 'strict'"
        if self.nlp_backend not in ("heuristic", "spacy"):
            return f"Invalid NLP_BACKEND '{self.nlp_backend}' - must be 'heuristic' or 'spacy'"
        if self.request_timeout <= 0 or self.total_timeout <= 0:
            return "REQUEST_TIMEOUT and TOTAL_TIMEOUT must be positive"
        if self.max_connections <= 0:
            return "MAX_CONNECTIONS must be positive"
        for name, value in (
            ("CLUSTER_EMBEDDING_THRESHOLD", self.cluster_embedding_threshold),
            ("CLUSTER_KEYWORD_THRESHOLD", self.cluster_keyword_threshold),
        ):
            if not 0.0 <= value <= 1.0:
                return f"{name} must be between 0 and 1"
        if self.cluster_window_hours <= 0:
            return "CLUSTER_WINDOW_HOURS must be positive"
        if self.trend_interval_seconds < 0:
            return "TREND_INTERVAL_SECONDS must be non-negative"
        if self.poll_interval_seconds <= 0:
            return "POLL_INTERVAL_SECONDS must be positive"
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            return f"Invalid LOG_LEVEL '{self.log_level}' - must be DEBUG, INFO, WARNING, ERROR, or CRITICAL"
        if self.log_format not in ("text", "json"):
            return f"Invalid LOG_FORMAT '{self.log_format}' - must be 'text' or 'json'"
        if self.log_backup_count < 0:
            return "LOG_BACKUP_COUNT must be non-negative"
        if self.log_max_bytes < 0:
            return "LOG_MAX_BYTES must be non-negative"
        return None
