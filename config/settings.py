"""
Configuration management for the lesson scheduling API.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Lesson Slot Scheduling API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False

    # Intersection & placement
    drop_zone_stride_minutes: int = 15
    grid_snap_minutes: int = 15

    # Heuristic
    heuristic_slot_minutes: int = 30
    assume_free_when_unset: bool = True
    fallback_days: List[int] = [0, 1, 2, 3, 4, 5, 6]  # every day
    fallback_start_minute: int = 540            # 09:00
    fallback_end_minute: int = 1260             # 21:00

    # Solver
    solver_timeout_seconds: int = 10
    solver_random_seed: int = 42
    solver_num_workers: int = 1

    # Calendar export
    ics_timezone: str = "UTC"
    ics_uid_domain: str = "lesson-scheduler.local"

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
