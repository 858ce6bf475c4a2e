from .settings import APIConfig, AppSettings, ObservabilityConfig, ScoringConfig, get_settings

__all__ = ["AppSettings", "ScoringConfig", "APIConfig", "ObservabilityConfig", "get_settings"]
