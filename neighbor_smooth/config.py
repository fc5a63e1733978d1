from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

load_dotenv(Path.cwd() / ".env", override=False)


@dataclass
class Settings:
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    random_seed: int = int(os.getenv("RANDOM_SEED", "0"))

    span: float = float(os.getenv("NEIGHBOR_SMOOTH_SPAN", "0.75"))
    degree: int = int(os.getenv("NEIGHBOR_SMOOTH_DEGREE", "1"))
    iterations: int = int(os.getenv("NEIGHBOR_SMOOTH_ITERATIONS", "0"))
    robust_iterations: int = int(os.getenv("NEIGHBOR_SMOOTH_ROBUST_ITERATIONS", "4"))
    k: int = int(os.getenv("NEIGHBOR_SMOOTH_K", "5"))
    metric: str = os.getenv("NEIGHBOR_SMOOTH_METRIC", "euclidean")


settings = Settings()

__all__ = ["Settings", "settings"]
