"""Customer query configuration."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

BalanceModeName = Literal["balance_non_zero", "balance_zero"]


class QueryConfig(BaseModel):
    """Defaults and limits applied to customer list queries."""

    default_limit: int = Field(default=20, gt=0, description="Page size when none is given")
    max_limit: int = Field(default=500, gt=0, description="Largest accepted page size")
    default_balance_mode: BalanceModeName = Field(
        default="balance_non_zero",
        description="Balance filter used when the request names none",
    )

    @model_validator(mode="after")
    def validate_limits(self) -> "QueryConfig":
        """Ensure the default page size fits under the maximum."""
        if self.default_limit > self.max_limit:
            raise ValueError("default_limit cannot exceed max_limit")
        return self
