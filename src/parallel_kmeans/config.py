"""
Configuration management for parallel-kmeans.

Loads training and logging defaults from environment variables (typically from
a .env file). Uses python-dotenv to load .env automatically.

Usage:
    from parallel_kmeans.config import config

    # Default worker count for new trainers
    threads = config.training.num_threads

    # Log level for setup_logging()
    level = config.logging.level
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Look for .env in project root (parent of src/)
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, naming it in the error."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class TrainingDefaults:
    """Defaults applied to KMeansConfig fields the caller leaves unset."""
    max_iter: int = 100
    num_threads: int = 1
    seed: int = 12345
    distance: str = "euclidean"
    initialisation: str = "random"
    empty_cluster_policy: str = "retain"

    def __post_init__(self):
        """Validate that numeric defaults are usable."""
        if self.max_iter < 1:
            raise ValueError(f"KMEANS_MAX_ITER must be >= 1, got {self.max_iter}")
        if self.num_threads < 1:
            raise ValueError(
                f"KMEANS_NUM_THREADS must be >= 1, got {self.num_threads}"
            )


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"

    def __post_init__(self):
        """Normalise the level name."""
        self.level = (self.level or "INFO").upper()


class Config:
    """
    Application configuration loaded from environment variables.

    Environment variables can be set:
    1. In a .env file in the project root
    2. In the system environment
    3. In a container/deployment environment
    """

    def __init__(self):
        """Load configuration from environment."""
        self.reload()

    def reload(self) -> None:
        """Re-read every setting from the current environment."""
        self.training = TrainingDefaults(
            max_iter=_env_int("KMEANS_MAX_ITER", 100),
            num_threads=_env_int("KMEANS_NUM_THREADS", 1),
            seed=_env_int("KMEANS_SEED", 12345),
            distance=os.getenv("KMEANS_DISTANCE", "euclidean").lower(),
            initialisation=os.getenv("KMEANS_INITIALISATION", "random").lower(),
            empty_cluster_policy=os.getenv(
                "KMEANS_EMPTY_CLUSTER_POLICY", "retain"
            ).lower(),
        )
        self.logging = LoggingConfig(level=os.getenv("LOG_LEVEL", "INFO"))


# Global config instance
config = Config()
