"""
Action Generator
Trasforma i risultati del match in azioni concrete: modifiche al CV,
temi su cui prepararsi al colloquio e un piano di studio giorno per giorno.

Funzione pura dei risultati degli stadi precedenti: nessun servizio esterno.
"""

from typing import List, Optional

from jobfit.config import load_matcher_config
from jobfit.config.matcher_config import MatcherConfig
from jobfit.models.match_result import (
    ActionSuggestion,
    GapAnalysis,
    HardGateResult,
    InterviewFocus,
    LearningPlan,
    LearningTask,
    ResumeEdit,
    SoftScoreResult,
)
from jobfit.services.logging_utils import log_section, print_with_prefix

SCORE_IMPROVEMENT_THRESHOLD = 70
REVIEW_DAY = 7


class ActionGenerator:
    def __init__(self, config: Optional[MatcherConfig] = None, verbose: bool = False):
        self.config = config or load_matcher_config()
        self.verbose = verbose

    def generate(
        self,
        hard_gate: HardGateResult,
        scores: SoftScoreResult,
        gaps: GapAnalysis,
    ) -> ActionSuggestion:
        log_section(self._log, "ACTIONS", width=60, char="-")
        actions = ActionSuggestion(
            resume_edits=self.resume_edits(gaps, scores),
            interview_focus=self.interview_focus(hard_gate, gaps),
            learning_plan=self.learning_plan(gaps),
        )
        self._log(
            f"   -> {len(actions.resume_edits)} modifiche CV, "
            f"{len(actions.interview_focus)} temi colloquio, "
            f"{len(actions.learning_plan.tasks)} attivita di studio"
        )
        return actions

    # ═══════════════════════════════════════════════════════════════════
    # CV
    # ═══════════════════════════════════════════════════════════════════

    def resume_edits(self, gaps: GapAnalysis, scores: SoftScoreResult) -> List[ResumeEdit]:
        edits: List[ResumeEdit] = []

        def add(type_: str, section: str, suggested: str, reason: str, current: Optional[str] = None) -> None:
            edits.append(ResumeEdit(
                type=type_, section=section, current=current,
                suggested=suggested, reason=reason, priority=len(edits) + 1,
            ))

        for strength in gaps.strengths:
            if strength.relevance == "high":
                add("highlight", "Competenze", strength.highlight_suggestion,
                    "Valorizzare un punto di forza richiesto dall'annuncio", current=strength.evidence)

        for gap in gaps.insufficient:
            add("modify", "Competenze",
                f"Descrivi l'uso concreto di {gap.name} con progetti e risultati misurabili",
                f"Rafforzare la percezione di {gap.name}")

        if scores.skill_match.score < SCORE_IMPROVEMENT_THRESHOLD:
            add("add", "Competenze",
                "Aggiungi le parole chiave tecniche dell'annuncio usando gli stessi termini",
                "Aumentare la copertura delle skill")

        if scores.experience_match.score < SCORE_IMPROVEMENT_THRESHOLD:
            add("modify", "Esperienze lavorative",
                "Quantifica i risultati (es. \"ridotti i tempi di risposta del 30%\")",
                "Rendere l'esperienza piu convincente")

        return edits

    # ═══════════════════════════════════════════════════════════════════
    # Colloquio
    # ═══════════════════════════════════════════════════════════════════

    def interview_focus(self, hard_gate: HardGateResult, gaps: GapAnalysis) -> List[InterviewFocus]:
        focus: List[InterviewFocus] = []

        for warning in hard_gate.borderline_warnings:
            focus.append(InterviewFocus(
                topic=f"Caso limite: {warning}",
                reason="Il selezionatore potrebbe approfondire questo punto",
                key_points=[
                    "Prepara dati ed esempi concreti",
                    "Sottolinea la rapidita di apprendimento",
                    "Mostra come l'esperienza affine sia trasferibile",
                ],
                sample_question="La sua esperienza su questo punto e un po' sotto la richiesta: come la vede?",
                answer_approach="Riconosci il divario e porta esempi di esperienza affine e apprendimento rapido",
            ))

        for gap in gaps.missing:
            if gap.impact == "high":
                focus.append(InterviewFocus(
                    topic=gap.name,
                    reason="Requisito centrale dell'annuncio",
                    key_points=[
                        "Spiega perche non hai ancora usato questa skill",
                        "Presenta un piano di apprendimento concreto",
                        "Evidenzia le skill affini gia possedute",
                    ],
                    sample_question=f"Non ha esperienza con {gap.name}: come pensa di diventare operativo?",
                    answer_approach="Mostra il piano di studio e le basi gia solide su tecnologie vicine",
                ))

        for strength in gaps.strengths:
            if strength.relevance == "high":
                focus.append(InterviewFocus(
                    topic=f"Approfondimento {strength.name}",
                    reason="E uno dei tuoi punti di forza principali",
                    key_points=[
                        "Prepara 2-3 casi tecnici approfonditi",
                        "Sappi spiegare i meccanismi interni",
                        "Racconta un problema complesso che hai risolto",
                    ],
                    sample_question=f"Mi racconti nel dettaglio la sua esperienza con {strength.name}",
                    answer_approach="Usa il metodo STAR con un caso concreto e metti in luce la profondita tecnica",
                ))

        return focus

    # ═══════════════════════════════════════════════════════════════════
    # Piano di studio
    # ═══════════════════════════════════════════════════════════════════

    def learning_plan(self, gaps: GapAnalysis) -> LearningPlan:
        plan_cfg = self.config.learning_plan
        focus_areas: List[str] = []
        tasks: List[LearningTask] = []
        resources: List[str] = []

        day = 1
        for gap in gaps.missing:
            if gap.impact != "high":
                continue
            if len(focus_areas) >= plan_cfg.max_focus_areas:
                break
            focus_areas.append(gap.name)
            tasks.append(LearningTask(
                day=day,
                task=f"Studia i concetti base e l'uso principale di {gap.name}",
                estimated_hours=plan_cfg.hours_per_day,
                deliverable="Tutorial introduttivo completato",
            ))
            tasks.append(LearningTask(
                day=day + 1,
                task=f"Esercitati con {gap.name} realizzando un piccolo progetto",
                estimated_hours=plan_cfg.hours_per_day + 1,
                deliverable="Progetto di esempio funzionante",
            ))
            resources.append(f"Documentazione ufficiale di {gap.name}")
            resources.append(f"Corso introduttivo su {gap.name}")
            day += 2

        if focus_areas:
            tasks.append(LearningTask(
                day=max(day, REVIEW_DAY),
                task="Ripassa quanto studiato nella settimana e riordina gli appunti",
                estimated_hours=plan_cfg.hours_per_day,
                deliverable="Appunti e sintesi degli argomenti",
            ))
            outcome = f"Conoscenza di base di {', '.join(focus_areas)} e capacita di usarle in casi semplici"
        else:
            focus_areas.append("Consolidamento delle competenze attuali")
            tasks = [
                LearningTask(day=1, task="Ripassa le funzionalita avanzate delle skill principali",
                             estimated_hours=plan_cfg.hours_per_day, deliverable="Schema dei concetti avanzati"),
                LearningTask(day=3, task="Prepara le risposte alle domande tecniche piu frequenti",
                             estimated_hours=plan_cfg.hours_per_day, deliverable="Documento di preparazione al colloquio"),
                LearningTask(day=5, task="Riordina i progetti in formato STAR",
                             estimated_hours=plan_cfg.hours_per_day, deliverable="Descrizione di 3 progetti"),
            ]
            outcome = "Preparazione al colloquio completa e competenze tecniche consolidate"

        return LearningPlan(
            duration=plan_cfg.duration,
            focus_areas=focus_areas,
            tasks=tasks,
            resources=resources,
            expected_outcome=outcome,
        )

    def _log(self, message: str) -> None:
        print_with_prefix("[ActionGenerator]", message, enabled=self.verbose)
