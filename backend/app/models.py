from pydantic import BaseModel, Field, field_validator
from typing import List, Dict, Any, Optional


class QueryRequest(BaseModel):
    query: str

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        """Reject blank queries before they reach the LLM."""
        if not v.strip():
            raise ValueError("query must not be empty")
        return v.strip()


class UploadResponse(BaseModel):
    ok: bool = True
    headers: List[str]
    rows: int
    meta: Dict[str, Any]
    statistics: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class ChartResponse(BaseModel):
    """Everything the chart widget needs: the config plus chart-ready rows."""
    config: Dict[str, Any]
    rows: List[Dict[str, Any]]
    pointCount: int
    description: str = ""


class SummaryResponse(BaseModel):
    columns: Dict[str, Dict[str, Any]]
    table: List[Dict[str, Any]]
    description: str


class InsightsResponse(BaseModel):
    insights: Optional[str] = None
