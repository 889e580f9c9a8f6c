from pydantic import BaseModel, ConfigDict, Field


class BatchItemResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: int
    prompt_preview: str = Field(serialization_alias="prompt")
    allowed: bool
    reason: str


class BatchSummary(BaseModel):
    total: int
    allowed: int
    blocked: int

    @classmethod
    def from_results(cls, results: list[BatchItemResult]) -> "BatchSummary":
        allowed = sum(1 for item in results if item.allowed)
        return cls(total=len(results), allowed=allowed, blocked=len(results) - allowed)


class BatchValidationResponse(BaseModel):
    success: bool = True
    results: list[BatchItemResult]
    summary: BatchSummary
