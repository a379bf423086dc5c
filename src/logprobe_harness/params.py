from __future__ import annotations
from typing import Any, ClassVar, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class TestParameters(BaseModel):
    """Settings for one integration run against one tree.

    Durations are in seconds. `unique_leaves` left at 0 means "all leaves
    unique", i.e. it takes the value of `leaf_count`.
    """

    __test__: ClassVar[bool] = False  # not a pytest class

    model_config = ConfigDict(frozen=True)

    tree_id: int
    check_log_empty: bool = True
    queue_leaves: bool = True
    await_sequencing: bool = True
    start_leaf: int = 0
    leaf_count: int = Field(default=1000, gt=0)
    unique_leaves: int = 0
    queue_batch_size: int = Field(default=50, gt=0)
    sequencer_batch_size: int = Field(default=100, gt=0)
    read_batch_size: int = Field(default=50, gt=0)
    sequencing_wait_total: float = Field(default=600.0, gt=0)
    sequencing_poll_wait: float = Field(default=5.0, ge=0)
    rpc_request_deadline: float = Field(default=30.0, gt=0)
    custom_leaf_prefix: str = ""
    # base64 Ed25519 key; when set every served root must carry a valid signature
    log_public_key_b64: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _default_unique_leaves(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("unique_leaves"):
            count = data.get("leaf_count", cls.model_fields["leaf_count"].default)
            data = {**data, "unique_leaves": count}
        return data

    @model_validator(mode="after")
    def _check_unique_leaves(self) -> "TestParameters":
        if not 0 < self.unique_leaves <= self.leaf_count:
            raise ValueError(
                f"unique_leaves must be in [1, leaf_count={self.leaf_count}], got {self.unique_leaves}"
            )
        return self

    @property
    def sequenced_size_target(self) -> int:
        return self.start_leaf + self.leaf_count


def default_test_parameters(tree_id: int) -> TestParameters:
    """Parameters for a normal run against the given tree."""
    return TestParameters(tree_id=tree_id)
