"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Dict, List, Optional, Tuple

from jobfit.agents.hard_gate import HardGateEvaluator
from jobfit.config.matcher_config import MatcherConfig
from jobfit.models.candidate import CandidateProfile
from jobfit.models.job import HardRequirement, JobRequirements, SoftRequirement
from jobfit.models.rules import ImplicationRule, ImplicationRuleSet
from jobfit.models.skill import Skill
from jobfit.services.implication_cache import ImplicationCache
from jobfit.services.implication_engine import ImplicationEngine
from jobfit.services.llm_service import SkillImplicationDecision
from jobfit.services.retry import RetryPolicy
from jobfit.services.skill_resolver import SkillResolver


class FakeLLMService:
    """LLM finto: registra le chiamate e restituisce decisioni preimpostate."""

    def __init__(
        self,
        decisions: Optional[Dict[Tuple[str, str], SkillImplicationDecision]] = None,
        default: Optional[SkillImplicationDecision] = None,
        errors: Optional[List[Exception]] = None,
        failing: Optional[Dict[str, Exception]] = None,
        is_available: bool = True,
    ):
        self.decisions = decisions or {}
        self.default = default or SkillImplicationDecision(can_imply=False, confidence=0.0, reasoning="no")
        self.errors = list(errors or [])
        self.failing = failing or {}
        self.is_available = is_available
        self.description = "fake:test-model"
        self.calls: List[Tuple[str, str]] = []

    def judge_skill_implication(self, candidate_skill, required_skill, prompt_template=None):
        self.calls.append((candidate_skill, required_skill))
        if self.errors:
            raise self.errors.pop(0)
        if candidate_skill in self.failing:
            raise self.failing[candidate_skill]
        return self.decisions.get((candidate_skill, required_skill), self.default)


@pytest.fixture(scope="session")
def resolver() -> SkillResolver:
    """Resolver sul dizionario incluso nel pacchetto."""
    return SkillResolver()


@pytest.fixture
def config() -> MatcherConfig:
    return MatcherConfig()


@pytest.fixture
def empty_rules() -> ImplicationRuleSet:
    return ImplicationRuleSet(version="test-empty")


@pytest.fixture
def django_rules() -> ImplicationRuleSet:
    """Una sola regola: Django implica Python con confidenza 0.85."""
    return ImplicationRuleSet(
        version="test-1",
        rules=[
            ImplicationRule(id="django_python", triggers=["Django"], implies=["Python"], confidence=0.85),
        ],
    )


@pytest.fixture
def no_sleep_retry() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, base_delay=0.01, sleep=lambda seconds: None)


@pytest.fixture
def make_engine(tmp_path, no_sleep_retry, empty_rules):
    """Factory di ImplicationEngine con cache su tmp_path."""

    def _make(rules: Optional[ImplicationRuleSet] = None, llm=None, ttl_days: int = 7) -> ImplicationEngine:
        return ImplicationEngine(
            rule_set=rules if rules is not None else empty_rules,
            llm_service=llm,
            cache=ImplicationCache(tmp_path / "cache", ttl_days=ttl_days),
            retry_policy=no_sleep_retry,
        )

    return _make


@pytest.fixture
def hard_gate(resolver, make_engine, django_rules, config) -> HardGateEvaluator:
    return HardGateEvaluator(
        skill_resolver=resolver,
        implication_engine=make_engine(django_rules),
        config=config,
        current_year=2024,
    )


def make_candidate(skills=(), **kwargs) -> CandidateProfile:
    """Profilo da una lista di nomi o di coppie (nome, livello)."""
    built = []
    for entry in skills:
        if isinstance(entry, tuple):
            built.append(Skill(name=entry[0], level=entry[1]))
        else:
            built.append(Skill(name=entry))
    return CandidateProfile(skills=built, **kwargs)


def skill_req(name: str, level: Optional[str] = None) -> HardRequirement:
    return HardRequirement(type="skill", requirement=name, skill=name, level=level)


def preferred_req(name: str, weight: str = "preferred") -> SoftRequirement:
    return SoftRequirement(type="skill", requirement=name, skill=name, weight=weight)


def make_job(hard=(), soft=(), **kwargs) -> JobRequirements:
    return JobRequirements(hard_requirements=list(hard), soft_requirements=list(soft), **kwargs)
