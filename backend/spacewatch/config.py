# spacewatch/config.py
# ------------------------------------------------------------
# Central configuration using pydantic-settings.
#
# All values can be overridden via environment variables.
# Engines never read `settings` directly; they receive an
# EngineOptions instance so tests can build their own.
# ------------------------------------------------------------

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings
from typing import List


class EngineOptions(BaseModel):
    """
    Timing and retention knobs shared by both simulation engines.
    """

    tick_interval_ms: int = Field(default=30_000, gt=0)
    history_window_ms: int = Field(default=86_400_000, gt=0)
    mode_history_capacity: int = Field(default=10, ge=1)

    # hourly points backfilled behind the first sample
    history_backfill_hours: int = Field(default=24, ge=0)

    @property
    def tick_interval_sec(self) -> float:
        return self.tick_interval_ms / 1000.0


class Settings(BaseSettings):
    """
    Runtime configuration for the backend.
    """

    # --------------------------------------------------------
    # Simulation toggles
    # --------------------------------------------------------
    generators_enabled: bool = True

    # --------------------------------------------------------
    # Simulation timing
    # --------------------------------------------------------
    tick_interval_ms: int = 30_000        # 30 seconds
    history_window_ms: int = 86_400_000   # 24 hours
    mode_history_capacity: int = 10
    history_backfill_hours: int = 24

    # --------------------------------------------------------
    # CORS / Frontend integration
    # --------------------------------------------------------
    api_cors_origins: str = (
        "http://localhost:5173,"
        "http://localhost:3000"
    )

    # --------------------------------------------------------
    # Helpers
    # --------------------------------------------------------
    def cors_list(self) -> List[str]:
        """
        Parse comma-separated CORS origins into a clean list.
        """
        return [
            x.strip()
            for x in self.api_cors_origins.split(",")
            if x.strip()
        ]

    def engine_options(self) -> EngineOptions:
        """
        Validated engine options built from the current settings.
        """
        return EngineOptions(
            tick_interval_ms=self.tick_interval_ms,
            history_window_ms=self.history_window_ms,
            mode_history_capacity=self.mode_history_capacity,
            history_backfill_hours=self.history_backfill_hours,
        )


# Process-default settings object
settings = Settings()
