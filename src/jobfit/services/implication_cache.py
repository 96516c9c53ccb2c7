"""
Cache persistente delle decisioni LLM sulle implicazioni tra skill.

Un file JSON per chiave in `cache_dir`. La chiave dipende da (skill candidato,
skill richiesta, versione regole): cambiando le regole si invalida tutto.
Le scritture passano da un file temporaneo + os.replace, quindi scrittori
concorrenti sulla stessa chiave non lasciano file a meta.
"""

import hashlib
import json
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from jobfit.services.llm_service import SkillImplicationDecision
from jobfit.services.logging_utils import print_with_prefix

KEY_PREFIX = "llm_impl_"

# Radice del progetto: i cache_dir relativi vengono risolti da qui
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent


def make_cache_key(candidate_skill: str, required_skill: str, rules_version: str) -> str:
    raw = f"{candidate_skill.lower()}|{required_skill.lower()}|{rules_version}"
    return KEY_PREFIX + hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImplicationCache:
    """Cache chiave -> decisione, su disco con TTL e copia in memoria."""

    def __init__(
        self,
        cache_dir: Union[str, Path] = "data/cache/implications",
        ttl_days: int = 7,
        now: Callable[[], datetime] = _utcnow,
        verbose: bool = False,
    ):
        self.cache_dir = Path(cache_dir)
        if not self.cache_dir.is_absolute():
            self.cache_dir = PROJECT_ROOT / self.cache_dir
        self.ttl = timedelta(days=ttl_days)
        self._now = now
        self.verbose = verbose
        self._memory: Dict[str, dict] = {}

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def _is_fresh(self, entry: dict) -> bool:
        try:
            cached_at = datetime.fromisoformat(entry["cached_at"])
        except (KeyError, TypeError, ValueError):
            return False
        return self._now() - cached_at <= self.ttl

    def get(self, key: str) -> Optional[SkillImplicationDecision]:
        entry = self._memory.get(key)
        if entry is None:
            path = self._path(key)
            if not path.exists():
                return None
            try:
                with open(path, "r", encoding="utf-8") as f:
                    entry = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self._log(f"Voce di cache illeggibile {path.name}: {e}")
                return None

        if not self._is_fresh(entry):
            self._memory.pop(key, None)
            return None

        try:
            decision = SkillImplicationDecision(
                can_imply=bool(entry.get("can_imply", False)),
                confidence=float(entry.get("confidence", 0.0)),
                reasoning=str(entry.get("reasoning", "")),
            )
        except (AttributeError, TypeError, ValueError) as e:
            self._log(f"Voce di cache non valida {key}: {e}")
            self._memory.pop(key, None)
            return None

        self._memory[key] = entry
        return decision

    def put(
        self,
        key: str,
        decision: SkillImplicationDecision,
        candidate_skill: Optional[str] = None,
        required_skill: Optional[str] = None,
        rules_version: Optional[str] = None,
    ) -> None:
        entry = {
            "key": key,
            "candidate_skill": candidate_skill,
            "required_skill": required_skill,
            "rules_version": rules_version,
            "can_imply": decision.can_imply,
            "confidence": decision.confidence,
            "reasoning": decision.reasoning,
            "cached_at": self._now().isoformat(),
        }
        self._memory[key] = entry

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entry, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path(key))
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def clear(self) -> None:
        self._memory.clear()
        if self.cache_dir.exists():
            for path in self.cache_dir.glob(f"{KEY_PREFIX}*.json"):
                path.unlink()

    def _log(self, message: str) -> None:
        print_with_prefix("[ImplicationCache]", message, enabled=self.verbose)
