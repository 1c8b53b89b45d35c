from pydantic import BaseModel


class CorrelationResult(BaseModel):
    """Correlation between a habit and one health metric."""
    metric: str
    coefficient: float
    p_value: float
    n: int
    strength: str
    done_day_avg: float | None = None
    not_done_day_avg: float | None = None
    difference_pct: float | None = None


class InsightResult(BaseModel):
    """Generated insight."""
    text: str
    confidence: str
    supporting_metric: str | None = None
    effect_size: float | None = None
