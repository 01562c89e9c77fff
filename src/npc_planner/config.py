"""Runtime configuration for the NPC task planner."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven planner settings."""

    model_config = SettingsConfigDict(env_prefix="NPC_PLANNER_", env_file=".env", extra="ignore")

    app_name: str = "npc-planner"
    log_level: str = "INFO"
    max_subplan_depth: int = Field(
        default=3,
        ge=0,
        description="How many nested sub-planning levels may be produced before sub-tasks stay unplanned.",
    )
    default_duration_ms: int = Field(default=8000, gt=0)
    world_min_y: int = -64
    world_max_y: int = 320
    personality_max_shift: float = Field(
        default=0.25,
        ge=0.0,
        le=0.25,
        description="Largest fraction by which personality traits may stretch or shrink a plan's duration.",
    )
    validate_plans: bool = False


settings = Settings()
