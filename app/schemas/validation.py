from pydantic import BaseModel


class ValidationError(BaseModel):
    """Individual validation error"""
    field: str  # dotted path, e.g. skills.0.level
    path: list[str | int]
    code: str  # required, email, domain, min_length, min_items, min, max, type, mismatch, max_size
    message: str


class ValidationPreviewResponse(BaseModel):
    """Response from validation preview endpoint"""
    valid: bool
    errors: list[ValidationError]
    record: dict | None = None
