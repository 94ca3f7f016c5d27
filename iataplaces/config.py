"""Configuration models and defaults."""
from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

DEFAULT_SOURCE_URL = "https://ourairports.com/airports.csv"
LATEST_FILENAME = "airports-latest.csv"


@dataclass(frozen=True)
class Config:
    csv_path: Path
    output_dir: Path = Path("data")
    source_url: str = DEFAULT_SOURCE_URL
    request_timeout_seconds: float = 60.0
    user_agent: str = "iataplaces/0.1"

    @staticmethod
    def default_csv_path() -> Path:
        return Path("data") / LATEST_FILENAME

    @classmethod
    def from_env(cls) -> "Config":
        csv_path = Path(os.getenv("AIRPORTS_CSV_PATH") or cls.default_csv_path())
        output_dir = Path(os.getenv("AIRPORTS_OUTPUT_DIR") or "data")
        source_url = os.getenv("AIRPORTS_SOURCE_URL") or DEFAULT_SOURCE_URL
        return cls(csv_path=csv_path, output_dir=output_dir, source_url=source_url)
