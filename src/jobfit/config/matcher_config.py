"""
Matcher Config
Parametri numerici e tabelle usati da gate, scorer, gap analyzer e action
generator. I default corrispondono alla configurazione di produzione; un file
JSON puo sovrascriverne una parte.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class BorderlineConfig(BaseModel):
    delta_years: int = 1


class ConfidenceConfig(BaseModel):
    direct_match: float = 0.90
    implied_match: float = 0.75
    keyword_match: float = 0.70
    unknown: float = 0.30


class DurationConfig(BaseModel):
    default_months: int = 12    # durata presunta se il testo non e interpretabile


class LevelMapConfig(BaseModel):
    """Mappa ordinale livello -> punteggio, con alias liberi."""
    level_map: Dict[str, int]
    aliases: Dict[str, str] = {}
    default_score: int = 0


def _default_proficiency() -> LevelMapConfig:
    return LevelMapConfig(
        level_map={"expert": 4, "proficient": 3, "familiar": 2, "beginner": 1},
        aliases={
            "精通": "expert", "专家": "expert", "esperto": "expert", "advanced": "expert",
            "熟练": "proficient", "熟悉": "proficient", "avanzato": "proficient", "buono": "proficient",
            "了解": "familiar", "掌握": "familiar", "intermedio": "familiar", "intermediate": "familiar",
            "入门": "beginner", "初学": "beginner", "base": "beginner", "basic": "beginner",
        },
        default_score=2,
    )


def _default_education() -> LevelMapConfig:
    return LevelMapConfig(
        level_map={"phd": 5, "master": 4, "bachelor": 3, "associate": 2, "high_school": 1},
        aliases={
            "博士": "phd", "doctor": "phd", "dottorato": "phd",
            "硕士": "master", "研究生": "master", "magistrale": "master", "msc": "master",
            "本科": "bachelor", "学士": "bachelor", "triennale": "bachelor", "laurea": "bachelor", "bsc": "bachelor",
            "大专": "associate", "专科": "associate",
            "高中": "high_school", "中专": "high_school", "diploma": "high_school", "maturita": "high_school",
        },
        default_score=0,
    )


class SkillScoringConfig(BaseModel):
    base_point: float = 10.0
    inference_multiplier: float = 0.8
    partial_multiplier: float = 0.5


class ExperienceScoringConfig(BaseModel):
    matched_threshold: int = 70
    partial_threshold: int = 40
    industry_keywords: List[str] = [
        "金融", "互联网", "电商", "教育", "医疗", "游戏", "物流",
        "fintech", "banking", "e-commerce", "healthcare", "logistics", "gaming",
    ]
    project_keywords: List[str] = [
        "微服务", "分布式", "高并发", "架构", "优化", "性能",
        "microservizi", "microservices", "distributed", "architettura", "performance", "scalabilita",
    ]


class BonusScoringConfig(BaseModel):
    bonus_skill_points: int = 15
    normal_skill_points: int = 10
    unique_strength_max: int = 20
    expert_skill_bonus: int = 5
    default_score: int = 50


class ScoringConfig(BaseModel):
    weights: Dict[str, float] = {"skill": 0.6, "experience": 0.3, "bonus": 0.1}
    skill: SkillScoringConfig = SkillScoringConfig()
    experience: ExperienceScoringConfig = ExperienceScoringConfig()
    bonus: BonusScoringConfig = BonusScoringConfig()


class GapConfig(BaseModel):
    valuable_categories: List[str] = ["bigdata", "ai_ml", "cloud"]
    suggestion_templates: Dict[str, str] = {
        "backend": "Approfondisci {skill} realizzando un piccolo servizio REST completo di test",
        "frontend": "Costruisci un componente o una pagina con {skill} e pubblicalo su GitHub",
        "database": "Esercitati su {skill}: modellazione dati, query complesse e indici",
        "devops": "Automatizza una pipeline di deploy usando {skill}",
        "cloud": "Segui un laboratorio pratico su {skill} e valuta una certificazione base",
        "bigdata": "Elabora un dataset reale con {skill} e documenta i risultati",
        "ai_ml": "Allena e valuta un modello con {skill} su un problema concreto",
        "default": "Studia i fondamenti di {skill} e applicali in un progetto personale",
    }


class LearningPlanConfig(BaseModel):
    duration: str = "1 settimana"
    max_focus_areas: int = 5
    hours_per_day: int = 2


class MatcherConfig(BaseModel):
    version: str = "1.0.0"
    borderline: BorderlineConfig = BorderlineConfig()
    confidence: ConfidenceConfig = ConfidenceConfig()
    duration: DurationConfig = DurationConfig()
    proficiency: LevelMapConfig = Field(default_factory=_default_proficiency)
    education: LevelMapConfig = Field(default_factory=_default_education)
    scoring: ScoringConfig = ScoringConfig()
    gap: GapConfig = GapConfig()
    learning_plan: LearningPlanConfig = LearningPlanConfig()

    # ═══════════════════════════════════════════════════════════════════
    # Helper
    # ═══════════════════════════════════════════════════════════════════

    def normalize_proficiency(self, level: Optional[str]) -> Optional[str]:
        """Riporta un livello (o un suo alias) al nome canonico; None se ignoto."""
        if not level:
            return None
        key = level.strip().lower()
        if key in self.proficiency.level_map:
            return key
        for alias, canonical in self.proficiency.aliases.items():
            if alias.lower() == key:
                return canonical
        return None

    def get_proficiency_score(self, level: Optional[str]) -> int:
        canonical = self.normalize_proficiency(level)
        if canonical is None:
            return self.proficiency.default_score
        return self.proficiency.level_map.get(canonical, self.proficiency.default_score)

    def normalize_education(self, education: Optional[str]) -> Optional[str]:
        """Trova il titolo di studio contenuto nel testo, partendo dal piu alto."""
        if not education:
            return None
        text = education.strip().lower()
        ranked = sorted(self.education.level_map.items(), key=lambda kv: kv[1], reverse=True)
        for canonical, _ in ranked:
            if canonical in text or canonical.replace("_", " ") in text:
                return canonical
            for alias, target in self.education.aliases.items():
                if target == canonical and alias.lower() in text:
                    return canonical
        return None

    def get_education_score(self, education: Optional[str]) -> int:
        canonical = self.normalize_education(education)
        if canonical is None:
            return self.education.default_score
        return self.education.level_map[canonical]

    def get_suggestion_template(self, category: Optional[str]) -> str:
        templates = self.gap.suggestion_templates
        if category and category in templates:
            return templates[category]
        return templates.get("default", "Approfondisci {skill}")

    def weight(self, dimension: str) -> float:
        return self.scoring.weights.get(dimension, 0.0)
