"""Configuration settings for the sync layer."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Shared storage group identifier, must match between writer and readers
DEFAULT_GROUP_ID = "group.com.fluentry.app"

# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
CONTAINERS_DIR = Path(os.getenv("FLUENTSYNC_CONTAINERS_DIR", str(DATA_DIR / "groups")))

# Refresh settings
REFRESH_INTERVAL_MINUTES = 60


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        CONTAINERS_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


@dataclass
class StoreSettings:
    """Shared storage configuration settings."""
    group_id: str = field(
        default_factory=lambda: os.getenv("FLUENTSYNC_GROUP_ID", DEFAULT_GROUP_ID)
    )
    containers_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("FLUENTSYNC_CONTAINERS_DIR", str(CONTAINERS_DIR))
        )
    )
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class SchedulerSettings:
    """Display refresh settings."""
    refresh_interval_minutes: int = field(
        default_factory=lambda: int(
            os.getenv("REFRESH_INTERVAL_MINUTES", str(REFRESH_INTERVAL_MINUTES))
        )
    )


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


def get_metrics_port() -> Optional[int]:
    """Get the metrics port from environment variable."""
    port = os.getenv("METRICS_PORT", "")
    return int(port) if port else None


@dataclass
class MonitoringSettings:
    """Prometheus metrics settings."""
    port: Optional[int] = field(default_factory=get_metrics_port)


def get_store_settings() -> StoreSettings:
    """Get store settings."""
    return StoreSettings()


def get_scheduler_settings() -> SchedulerSettings:
    """Get scheduler settings."""
    return SchedulerSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    store: StoreSettings = field(default_factory=get_store_settings)
    scheduler: SchedulerSettings = field(default_factory=get_scheduler_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        # An unusable group id is not an error here: the store degrades to empty.
        if self.scheduler.refresh_interval_minutes < 1:
            raise ValueError("REFRESH_INTERVAL_MINUTES must be positive")

        if self.monitoring.port is not None and not 0 < self.monitoring.port < 65536:
            raise ValueError("METRICS_PORT must be a valid TCP port")


# Create global settings instance
settings = Settings()
settings.validate()
