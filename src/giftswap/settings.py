"""Runtime settings.

Values can be overridden with ``GIFTSWAP_*`` environment variables or a
``.env`` file, e.g.::

    GIFTSWAP_BOT_DELAY_MIN=0
    GIFTSWAP_BOT_DELAY_MAX=0
    GIFTSWAP_STATE_DIR=/var/lib/giftswap
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Bot "thinking" delay before a move, in seconds
    bot_delay_min: float = Field(default=4.5, ge=0)
    bot_delay_max: float = Field(default=5.5, ge=0)
    # Pause between a bot move and the end of its turn
    end_turn_delay: float = Field(default=0.5, ge=0)
    # Move attempts per bot per slot before the turn is force-ended
    max_bot_attempts: int = Field(default=10, ge=1)
    # Player ids starting with this are driven by the autoplay agent
    bot_prefix: str = "bot_"
    # Directory for the YAML game store
    state_dir: str = "giftswap_state"

    model_config = SettingsConfigDict(
        env_prefix="GIFTSWAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_delays(self) -> "Settings":
        if self.bot_delay_max < self.bot_delay_min:
            raise ValueError(
                f"bot_delay_max ({self.bot_delay_max}) must be >= bot_delay_min ({self.bot_delay_min})"
            )
        return self


def get_settings(**overrides) -> Settings:
    """Load settings from the environment, with explicit overrides on top."""
    return Settings(**overrides)
