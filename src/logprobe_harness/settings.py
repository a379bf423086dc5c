from __future__ import annotations
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from .params import TestParameters


class Settings(BaseSettings):
    log_url: str = Field(default="http://127.0.0.1:8090", alias="LOGPROBE_LOG_URL")
    tree_id: int = Field(default=0, alias="LOGPROBE_TREE_ID")
    api_token: Optional[str] = Field(default=None, alias="LOGPROBE_API_TOKEN")

    check_log_empty: bool = Field(default=True, alias="LOGPROBE_CHECK_LOG_EMPTY")
    queue_leaves: bool = Field(default=True, alias="LOGPROBE_QUEUE_LEAVES")
    await_sequencing: bool = Field(default=True, alias="LOGPROBE_AWAIT_SEQUENCING")

    start_leaf: int = Field(default=0, alias="LOGPROBE_START_LEAF")
    leaf_count: int = Field(default=1000, alias="LOGPROBE_LEAF_COUNT")
    unique_leaves: int = Field(default=0, alias="LOGPROBE_UNIQUE_LEAVES")
    queue_batch_size: int = Field(default=50, alias="LOGPROBE_QUEUE_BATCH_SIZE")
    sequencer_batch_size: int = Field(default=100, alias="LOGPROBE_SEQUENCER_BATCH_SIZE")
    read_batch_size: int = Field(default=50, alias="LOGPROBE_READ_BATCH_SIZE")

    # Timing budgets (seconds)
    sequencing_wait_total: float = Field(default=600.0, alias="LOGPROBE_SEQUENCING_WAIT_TOTAL")
    sequencing_poll_wait: float = Field(default=5.0, alias="LOGPROBE_SEQUENCING_POLL_WAIT")
    rpc_request_deadline: float = Field(default=30.0, alias="LOGPROBE_RPC_REQUEST_DEADLINE")

    custom_leaf_prefix: str = Field(default="", alias="LOGPROBE_CUSTOM_LEAF_PREFIX")
    log_public_key_b64: Optional[str] = Field(default=None, alias="LOGPROBE_LOG_PUBLIC_KEY_B64")

    log_level: str = Field(default="INFO", alias="LOGPROBE_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, populate_by_name=True, extra="ignore"
    )

    def to_parameters(self, **overrides) -> TestParameters:
        """Build run parameters from settings; `None` overrides are ignored."""
        values = {name: getattr(self, name) for name in TestParameters.model_fields}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return TestParameters(**values)


settings = Settings()  # load at import
