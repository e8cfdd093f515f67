"""
Configuration loader: reads config.yaml, validates it against JSON Schema,
resolves the webhook URL from the environment.
"""

from config.loader import (
    AgentSpec,
    AlertingConfig,
    AppConfig,
    ConfigError,
    ExchangeConfig,
    FeedConfig,
    JournalConfig,
    OrchestratorConfig,
    load_config,
)

__all__ = [
    "AgentSpec",
    "AlertingConfig",
    "AppConfig",
    "ConfigError",
    "ExchangeConfig",
    "FeedConfig",
    "JournalConfig",
    "OrchestratorConfig",
    "load_config",
]
