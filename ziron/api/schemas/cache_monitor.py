from typing import Any, Dict, List, Literal

from pydantic import BaseModel


class CacheInsightsResponse(BaseModel):
    performance: Literal["Excellent", "Good", "Needs Improvement"]
    recommendations: List[str]
    issues: List[str]
    metrics: Dict[str, Any]
