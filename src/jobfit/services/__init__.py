# services package
"""Services used by the matching agents (dictionary, rules, LLM, cache)."""

from jobfit.services.llm_service import (
    LLMError,
    LLMErrorKind,
    LLMNotAvailableError,
    LLMService,
    SkillImplicationDecision,
)
from jobfit.services.retry import RetryPolicy, is_transient_llm_error
from jobfit.services.implication_cache import ImplicationCache, make_cache_key
from jobfit.services.skill_resolver import SkillLookupResult, SkillResolver
from jobfit.services.implication_engine import (
    ImplicationEngine,
    ImplicationResult,
    ImplicationTier,
)

__all__ = [
    "LLMError",
    "LLMErrorKind",
    "LLMNotAvailableError",
    "LLMService",
    "SkillImplicationDecision",
    "RetryPolicy",
    "is_transient_llm_error",
    "ImplicationCache",
    "make_cache_key",
    "SkillLookupResult",
    "SkillResolver",
    "ImplicationEngine",
    "ImplicationResult",
    "ImplicationTier",
]
