# config package
"""
Caricamento della configurazione del matcher e delle regole di implicazione.

Ordine di risoluzione del percorso: argomento esplicito, variabile d'ambiente
(anche da .env), default inclusi nel pacchetto.
"""

import json
import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from jobfit.config.matcher_config import MatcherConfig
from jobfit.models.rules import ImplicationRuleSet, merge_rule_sets

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_RULES_PATH = DATA_DIR / "implication_rules.json"
DEFAULT_DICTIONARY_PATH = DATA_DIR / "skills_dictionary.csv"

PathLike = Union[str, Path]


def _read_json(path: PathLike) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_matcher_config(path: Optional[PathLike] = None) -> MatcherConfig:
    """
    Carica MatcherConfig da JSON (JOBFIT_MATCHER_CONFIG se path e None).
    Senza file restituisce i default.
    """
    load_dotenv()
    path = path or os.getenv("JOBFIT_MATCHER_CONFIG")
    if not path:
        return MatcherConfig()
    return MatcherConfig.model_validate(_read_json(path))


def load_rule_set(
    path: Optional[PathLike] = None,
    overrides_path: Optional[PathLike] = None,
) -> ImplicationRuleSet:
    """
    Carica il set di regole di implicazione ed eventualmente applica le
    regole utente (JOBFIT_USER_RULES) con merge_rule_sets.
    """
    load_dotenv()
    path = path or os.getenv("JOBFIT_IMPLICATION_RULES") or DEFAULT_RULES_PATH
    rule_set = ImplicationRuleSet.model_validate(_read_json(path))

    overrides_path = overrides_path or os.getenv("JOBFIT_USER_RULES")
    if overrides_path:
        overrides = ImplicationRuleSet.model_validate(_read_json(overrides_path))
        rule_set = merge_rule_sets(rule_set, overrides)
    return rule_set


__all__ = [
    "DATA_DIR",
    "DEFAULT_DICTIONARY_PATH",
    "DEFAULT_RULES_PATH",
    "MatcherConfig",
    "load_matcher_config",
    "load_rule_set",
]
