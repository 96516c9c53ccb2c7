"""
Skill Resolver
Normalizza i nomi delle skill sul dizionario interno (nome standard + categoria).

Ordine di ricerca:
1. Alias (esatto, poi case-insensitive)
2. Traduzione (esatta, poi case-insensitive)
3. Nome gia standard (esatto, poi case-insensitive)
4. Non trovato: restituisce l'input con confidence 0

Nessun accesso di rete: il dizionario e un CSV caricato con pandas
(colonne: name, category, aliases, translations; liste separate da virgola).
"""

import hashlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from jobfit.config import DEFAULT_DICTIONARY_PATH
from jobfit.services.logging_utils import print_with_prefix

SOURCE_ALIAS = "alias"
SOURCE_TRANSLATION = "translation"
SOURCE_EXACT = "exact"
SOURCE_NONE = "none"

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class SkillLookupResult:
    original_name: str
    standard_name: str
    category: Optional[str]
    found: bool
    match_source: str
    confidence: float


def normalize_skill_text(raw: Optional[str]) -> str:
    """Trim e spazi multipli collassati in uno."""
    if raw is None:
        return ""
    return _WHITESPACE.sub(" ", raw.strip())


def _split_list(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


class SkillResolver:
    """
    Dizionario delle skill con cache delle ricerche.

    Gli indici vengono costruiti una volta sola e poi solo letti; la cache
    contiene risultati deterministici, quindi puo essere condivisa.
    """

    def __init__(
        self,
        dictionary_path: Optional[Union[str, Path]] = None,
        verbose: bool = False,
    ):
        """
        Args:
            dictionary_path: CSV del dizionario (default: quello incluso nel pacchetto)
            verbose: Se True, stampa log
        """
        self.verbose = verbose
        self.dictionary_path = Path(dictionary_path or DEFAULT_DICTIONARY_PATH)

        self._log(f"Caricamento dizionario skill da: {self.dictionary_path.name}...")
        df = pd.read_csv(self.dictionary_path, dtype=str, keep_default_na=False)
        self.version = self._hash_file(self.dictionary_path)
        self._build_indexes(df)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, version: str = "inline", verbose: bool = False) -> "SkillResolver":
        """Costruisce il resolver da un DataFrame gia in memoria."""
        resolver = cls.__new__(cls)
        resolver.verbose = verbose
        resolver.dictionary_path = None
        resolver.version = version
        resolver._build_indexes(df.fillna("").astype(str))
        return resolver

    # ═══════════════════════════════════════════════════════════════════
    # Indici
    # ═══════════════════════════════════════════════════════════════════

    def _build_indexes(self, df: pd.DataFrame) -> None:
        missing = {"name", "category"} - set(df.columns)
        if missing:
            raise ValueError(f"Colonne mancanti nel dizionario skill: {sorted(missing)}")

        self._skill_to_category: Dict[str, str] = {}
        self._standard_ci: Dict[str, str] = {}
        self._alias_exact: Dict[str, str] = {}
        self._alias_ci: Dict[str, str] = {}
        self._translation_exact: Dict[str, str] = {}
        self._translation_ci: Dict[str, str] = {}
        self._cache: Dict[str, SkillLookupResult] = {}

        for _, row in df.iterrows():
            name = normalize_skill_text(row["name"])
            if not name:
                continue
            self._skill_to_category[name] = row["category"].strip() or None
            self._standard_ci.setdefault(name.lower(), name)

            for alias in _split_list(row.get("aliases", "")):
                self._alias_exact.setdefault(alias, name)
                self._alias_ci.setdefault(alias.lower(), name)

            for translation in _split_list(row.get("translations", "")):
                self._translation_exact.setdefault(translation, name)
                self._translation_ci.setdefault(translation.lower(), name)

        self._log(
            f"   -> {len(self._skill_to_category)} skill, "
            f"{len(self._alias_exact)} alias, {len(self._translation_exact)} traduzioni"
        )

    @staticmethod
    def _hash_file(path: Path) -> str:
        digest = hashlib.md5(path.read_bytes()).hexdigest()[:8]
        return f"{path.stem}-{digest}"

    # ═══════════════════════════════════════════════════════════════════
    # Lookup
    # ═══════════════════════════════════════════════════════════════════

    def lookup(self, raw: Optional[str]) -> SkillLookupResult:
        """Risolve una skill grezza nel suo nome standard."""
        key = normalize_skill_text(raw)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = self._resolve(raw or "", key)
        self._cache[key] = result
        return result

    def _resolve(self, original: str, key: str) -> SkillLookupResult:
        if not key:
            return self._not_found(original, key)

        lowered = key.lower()
        steps = (
            (self._alias_exact, key, SOURCE_ALIAS),
            (self._alias_ci, lowered, SOURCE_ALIAS),
            (self._translation_exact, key, SOURCE_TRANSLATION),
            (self._translation_ci, lowered, SOURCE_TRANSLATION),
        )
        for index, text, source in steps:
            standard = index.get(text)
            if standard is not None:
                return self._found(original, standard, source)

        if key in self._skill_to_category:
            return self._found(original, key, SOURCE_EXACT)
        standard = self._standard_ci.get(lowered)
        if standard is not None:
            return self._found(original, standard, SOURCE_EXACT)

        return self._not_found(original, key)

    def _found(self, original: str, standard: str, source: str) -> SkillLookupResult:
        return SkillLookupResult(
            original_name=original,
            standard_name=standard,
            category=self._skill_to_category.get(standard),
            found=True,
            match_source=source,
            confidence=1.0,
        )

    @staticmethod
    def _not_found(original: str, key: str) -> SkillLookupResult:
        return SkillLookupResult(
            original_name=original,
            standard_name=key or original,
            category=None,
            found=False,
            match_source=SOURCE_NONE,
            confidence=0.0,
        )

    def standardize(self, raw: Optional[str]) -> str:
        return self.lookup(raw).standard_name

    def category_of(self, raw: Optional[str]) -> Optional[str]:
        return self.lookup(raw).category

    def lookup_all(self, raws: List[str]) -> List[SkillLookupResult]:
        return [self.lookup(r) for r in raws]

    def is_known(self, raw: Optional[str]) -> bool:
        return self.lookup(raw).found

    def skills_by_category(self, category: str) -> List[str]:
        return [name for name, cat in self._skill_to_category.items() if cat == category]

    @property
    def categories(self) -> List[str]:
        return sorted({c for c in self._skill_to_category.values() if c})

    def get_stats(self) -> Dict[str, int]:
        return {
            "skills": len(self._skill_to_category),
            "aliases": len(self._alias_exact),
            "translations": len(self._translation_exact),
            "categories": len(self.categories),
            "cached_lookups": len(self._cache),
        }

    def clear_cache(self) -> None:
        self._cache.clear()

    def _log(self, message: str) -> None:
        print_with_prefix("[SkillResolver]", message, enabled=self.verbose)
