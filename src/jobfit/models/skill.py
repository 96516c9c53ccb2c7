from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class SkillLevel(str, Enum):
    """Livelli di padronanza canonici (gli alias sono risolti da MatcherConfig)."""
    EXPERT = "expert"
    PROFICIENT = "proficient"
    FAMILIAR = "familiar"
    BEGINNER = "beginner"
    UNKNOWN = "unknown"


class Skill(BaseModel):
    name: str
    standard_name: Optional[str] = None
    category: Optional[str] = None
    level: str = SkillLevel.UNKNOWN.value   # accetta anche alias ("精通", "esperto", ...)
    years: Optional[float] = None
    evidence: List[str] = []
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
