from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Paths
    base_dir: Path = Path(__file__).resolve().parent
    data_dir: Path = Path("data")
    applications_file: str = "applications.json"
    templates_dir: Path = base_dir / "templates"
    static_dir: Path = Path("static")

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "INFO"

    # Pagination
    default_page_size: int = 10
    allowed_page_sizes: tuple[int, ...] = (10, 25, 50)

    model_config = {"env_prefix": "APPTRACKER_"}

    @property
    def applications_path(self) -> Path:
        return self.data_dir / self.applications_file


settings = Settings()
