"""Result model returned by the query processor."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict


class QueryResult(BaseModel):
    """Answer to one query plus the payload an AI formatter needs.

    ``response`` is always a usable plain-text answer. When ``use_ai`` is
    set the result is a hand-off point: a formatter may replace the text
    using the raw payload.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: str
    response: str
    use_ai: bool = False
    confidence: float = 0.0

    entity: Optional[str] = None
    query: Optional[str] = None
    found: Optional[bool] = None
    action: Optional[str] = None

    count: Optional[int] = None
    total_count: Optional[int] = None
    display_count: Optional[int] = None

    # Record payloads are kept as the original objects, not copies.
    record: Any = None
    records: Optional[List[Any]] = None
    results: Optional[List[Any]] = None
    main_record: Any = None
    related_records: Optional[List[Any]] = None
    related_type: Optional[str] = None
    stats: Optional[Dict[str, Any]] = None

    error: Optional[str] = None
    ai_error: Optional[str] = None

    def to_context(self) -> Dict[str, Any]:
        """JSON-ready view of the result for AI prompts and CLI output."""
        data = self.model_dump(exclude_none=True, exclude={"results"})
        if self.results is not None:
            data["results"] = [
                result.to_dict() if hasattr(result, "to_dict") else result
                for result in self.results
            ]
        return data
