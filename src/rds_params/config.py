"""Runtime configuration, read from ``RDS_PARAMS_*`` environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings

from rds_params.planner import MAX_PARAMS_PER_CHUNK
from rds_params.retry import RetryPolicy


class ReconcilerConfig(BaseSettings):
    """Main configuration for reconciliation passes."""

    # AWS Configuration
    aws_region: str = Field(default="eu-west-1", description="AWS region")

    # Planning
    max_chunk_size: int = Field(
        default=MAX_PARAMS_PER_CHUNK,
        gt=0,
        description="Maximum settings per ModifyDBParameterGroup call",
    )
    engine_family: str | None = Field(
        default=None,
        description="Engine family used to pick coupling rules when the group has none",
    )

    # Submission
    submit_timeout_sec: float = Field(
        default=30.0, gt=0, description="Timeout for a single chunk submission"
    )
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    model_config = {"env_prefix": "RDS_PARAMS_", "env_nested_delimiter": "__"}
