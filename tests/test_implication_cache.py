"""
Tests for the persistent LLM implication cache.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from jobfit.services.implication_cache import PROJECT_ROOT, ImplicationCache, make_cache_key
from jobfit.services.llm_service import SkillImplicationDecision


class Clock:
    def __init__(self):
        self.current = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.current


DECISION = SkillImplicationDecision(can_imply=True, confidence=0.8, reasoning="ok")


class TestCacheKey:
    """Keys depend on both skills and on the rules version."""

    def test_case_insensitive(self):
        assert make_cache_key("Airflow", "Python", "1.0") == make_cache_key("airflow", "PYTHON", "1.0")

    def test_rules_version_changes_key(self):
        assert make_cache_key("Airflow", "Python", "1.0") != make_cache_key("Airflow", "Python", "1.1")

    def test_direction_matters(self):
        assert make_cache_key("Airflow", "Python", "1.0") != make_cache_key("Python", "Airflow", "1.0")

    def test_prefix(self):
        key = make_cache_key("a", "b", "v")
        assert key.startswith("llm_impl_")
        assert len(key) == len("llm_impl_") + 16


class TestImplicationCache:
    """Disk storage with TTL."""

    def test_put_then_get(self, tmp_path):
        cache = ImplicationCache(tmp_path)
        cache.put("k1", DECISION, "Airflow", "Python", "1.0")
        assert cache.get("k1") == DECISION

        stored = json.loads((tmp_path / "k1.json").read_text(encoding="utf-8"))
        assert stored["candidate_skill"] == "Airflow"
        assert stored["rules_version"] == "1.0"

    def test_missing_key(self, tmp_path):
        assert ImplicationCache(tmp_path).get("nope") is None

    def test_read_from_disk(self, tmp_path):
        """Un'altra istanza legge le voci scritte su disco."""
        ImplicationCache(tmp_path).put("k1", DECISION)
        assert ImplicationCache(tmp_path).get("k1") == DECISION

    def test_ttl_expiry(self, tmp_path):
        """Dopo ttl_days la voce non e piu valida."""
        clock = Clock()
        cache = ImplicationCache(tmp_path, ttl_days=7, now=clock)
        cache.put("k1", DECISION)

        clock.current += timedelta(days=7)
        assert cache.get("k1") == DECISION

        clock.current += timedelta(seconds=1)
        assert cache.get("k1") is None
        assert ImplicationCache(tmp_path, ttl_days=7, now=clock).get("k1") is None

    def test_corrupt_file_is_a_miss(self, tmp_path):
        (tmp_path / "k1.json").write_text("{not json", encoding="utf-8")
        assert ImplicationCache(tmp_path).get("k1") is None

    def test_no_temp_files_left(self, tmp_path):
        cache = ImplicationCache(tmp_path)
        cache.put("k1", DECISION)
        cache.put("k1", DECISION)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["k1.json"]

    def test_clear(self, tmp_path):
        cache = ImplicationCache(tmp_path)
        key = make_cache_key("Airflow", "Python", "1.0")
        cache.put(key, DECISION)
        cache.clear()
        assert cache.get(key) is None
        assert list(tmp_path.glob("*.json")) == []

    def test_invalid_entry_is_a_miss(self, tmp_path):
        """Una voce con campi non validi viene trattata come assente."""
        entry = {"can_imply": True, "confidence": None, "cached_at": datetime.now(timezone.utc).isoformat()}
        (tmp_path / "k1.json").write_text(json.dumps(entry), encoding="utf-8")
        assert ImplicationCache(tmp_path).get("k1") is None

    def test_unwritable_dir_raises_oserror(self, tmp_path):
        """Una directory di cache non creabile produce OSError, non altri errori."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("", encoding="utf-8")
        cache = ImplicationCache(blocker / "cache")
        with pytest.raises(OSError):
            cache.put("k1", DECISION)
        assert cache.get("nope") is None

    def test_relative_dir_is_anchored_to_project_root(self):
        cache = ImplicationCache("data/cache/implications")
        assert cache.cache_dir == PROJECT_ROOT / "data" / "cache" / "implications"
        assert cache.cache_dir.is_absolute()
