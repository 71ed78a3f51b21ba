"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Tier thresholds (fractions of grand total)
    default_a_pct: float = 0.7
    default_b_pct: float = 0.2

    # Chart annotation
    label_precision: int = 4  # decimal places compared for boundary labels

    # Narrative
    metric_label: str = "delivery delay"

    # Evaluation session
    evaluation_cache_size: int = 32  # 0 disables memoization


settings = Settings()
