from pydantic import BaseModel
from typing import List, Optional

from jobfit.models.skill import Skill


class Experience(BaseModel):
    """Esperienza lavorativa del candidato."""
    company: Optional[str] = None
    title: Optional[str] = None
    duration: Optional[str] = None      # es. "2019 - 2022", "2021 - presente"
    industry: Optional[str] = None
    highlights: List[str] = []
    evidence: List[str] = []


class Project(BaseModel):
    """Progetto citato nel CV."""
    name: str
    role: Optional[str] = None
    tech_stack: List[str] = []
    achievements: List[str] = []


class CandidateProfile(BaseModel):
    name: Optional[str] = None
    skills: List[Skill] = []
    experiences: List[Experience] = []
    projects: List[Project] = []
    experience_years: Optional[int] = None     # se assente viene stimato dalle esperienze
    education: Optional[str] = None
    current_title: Optional[str] = None
    certifications: List[str] = []
    original_text: Optional[str] = None

    def skill_names(self) -> List[str]:
        return [s.name for s in self.skills]
