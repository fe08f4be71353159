# backend/barbershop/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/barbershop.db"
    redis_url: str | None = None

    timezone: str = "Europe/Dublin"
    log_level: str = "INFO"

    # Booking policy
    booking_window_days: int = 90
    slot_times: str = "10:00,10:40,11:20,12:00,12:40,13:20,14:00,14:40"
    weekday_capacity: str = "2,2,2,3,3,3,3"  # Monday first
    default_slot_duration: int = 40
    max_range_days: int = 366

    # Wait-time simulation
    default_service_minutes: int = 30
    lookahead_minutes: int = 240
    no_barber_wait_minutes: int = 60

    # Slot / queue locks
    lock_retries: int = 3
    lock_wait_seconds: float = 2.0
    lock_lease_seconds: int = 10

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative sqlite paths are resolved against the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
