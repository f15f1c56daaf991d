from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application configuration settings.
    """
    model_config = SettingsConfigDict(env_prefix="AGENT_MONITOR_", env_file=".env", extra="ignore")

    # Service Info
    service_name: str = "agent-monitor"
    environment: str = "local"
    log_level: str = "INFO"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Tracing
    max_metrics_per_series: int = 1000
    slow_operation_threshold_ms: float = 5000.0
    forward_usage_patterns: bool = True
    sample_resource_usage: bool = True

    # Anomaly detection
    anomaly_contamination: float = 0.1
    anomaly_tree_count: int = 100
    anomaly_sample_size: int = 256
    anomaly_score_threshold: float = -0.5
    anomaly_enable_realtime_alerts: bool = True
    anomaly_max_patterns: int = 10_000
    anomaly_min_training_patterns: int = 100
    anomaly_max_anomalies: int = 1000

    # Analytics
    analytics_history_limit: int = 100
    dashboard_poll_interval_seconds: float = 5.0
    dashboard_polling_enabled: bool = True

settings = Settings()
