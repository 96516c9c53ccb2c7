from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


class RequirementType(str, Enum):
    EXPERIENCE = "experience"
    SKILL = "skill"
    EDUCATION = "education"
    CERTIFICATION = "certification"
    INDUSTRY = "industry"
    OTHER = "other"     # tipi non riconosciuti dall'estrattore


class SoftWeight(str, Enum):
    PREFERRED = "preferred"
    BONUS = "bonus"
    NICE_TO_HAVE = "nice_to_have"


def _coerce_type(value: Any) -> Any:
    if isinstance(value, str) and value.lower() not in {t.value for t in RequirementType}:
        return RequirementType.OTHER
    return value.lower() if isinstance(value, str) else value


class HardRequirement(BaseModel):
    type: RequirementType
    requirement: str                        # testo grezzo dell'annuncio
    value: Optional[str] = None             # valore normalizzato (es. "bachelor")
    skill: Optional[str] = None
    standard_name: Optional[str] = None
    level: Optional[str] = None
    years_required: Optional[int] = None
    evidence: List[str] = []
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        return _coerce_type(value)


class SoftRequirement(BaseModel):
    type: RequirementType
    requirement: str
    weight: SoftWeight = SoftWeight.PREFERRED
    skill: Optional[str] = None
    standard_name: Optional[str] = None
    level: Optional[str] = None
    evidence: List[str] = []
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        return _coerce_type(value)


class JobRequirements(BaseModel):
    title: Optional[str] = None
    company: Optional[str] = None
    hard_requirements: List[HardRequirement] = []
    soft_requirements: List[SoftRequirement] = []
    original_text: Optional[str] = None

    def required_skills(self) -> List[HardRequirement]:
        return [r for r in self.hard_requirements if r.type == RequirementType.SKILL]

    def preferred_skills(self) -> List[SoftRequirement]:
        return [r for r in self.soft_requirements if r.type == RequirementType.SKILL]
