"""
LLM Service
Wrapper per LLM locali (Ollama o LM Studio) usato come ultimo livello di
inferenza delle skill.

Gli errori del provider vengono classificati in LLMErrorKind, cosi la
RetryPolicy puo distinguere i problemi transitori da quelli definitivi.
"""

import json
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import ollama
import openai
from dotenv import load_dotenv

from jobfit.services.logging_utils import print_with_prefix


class LLMErrorKind(str, Enum):
    CONNECTION_FAILED = "connection_failed"
    REQUEST_TIMEOUT = "request_timeout"
    RATE_LIMITED = "rate_limited"
    INVALID_API_KEY = "invalid_api_key"
    QUOTA_EXCEEDED = "quota_exceeded"
    MODEL_NOT_FOUND = "model_not_found"
    CONTENT_FILTERED = "content_filtered"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"


class LLMError(Exception):
    """Errore di una chiamata al modello, con il tipo di guasto."""

    def __init__(self, message: str, kind: LLMErrorKind = LLMErrorKind.UNKNOWN):
        super().__init__(message)
        self.kind = kind


class LLMNotAvailableError(LLMError):
    """Il provider non e raggiungibile o il modello non e caricato."""
    pass


@dataclass(frozen=True)
class SkillImplicationDecision:
    can_imply: bool
    confidence: float
    reasoning: str


IMPLICATION_SYSTEM_PROMPT = """You are a senior technical recruiter who knows how technologies relate to each other.
Judge skill implications conservatively: only answer true when practicing the first skill
necessarily involves the second one.
ALWAYS respond with valid JSON only."""

IMPLICATION_PROMPT = """Determine whether a candidate who has the skill "{candidate_skill}" can reasonably be assumed to also have the skill "{required_skill}".

Consider:
- Is "{required_skill}" the language, platform or a core component of "{candidate_skill}"?
- Would a professional using "{candidate_skill}" daily necessarily practice "{required_skill}"?

Respond ONLY with valid JSON in this format:
{"can_imply": true or false, "confidence": number between 0 and 1, "reasoning": "one short sentence"}"""


def classify_error(error: BaseException) -> LLMErrorKind:
    """Mappa un'eccezione di openai/ollama (o di rete) in un LLMErrorKind."""
    if isinstance(error, LLMError):
        return error.kind
    if isinstance(error, openai.APITimeoutError):
        return LLMErrorKind.REQUEST_TIMEOUT
    if isinstance(error, openai.APIConnectionError):
        return LLMErrorKind.CONNECTION_FAILED
    if isinstance(error, openai.RateLimitError):
        return LLMErrorKind.RATE_LIMITED
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return LLMErrorKind.INVALID_API_KEY
    if isinstance(error, openai.NotFoundError):
        return LLMErrorKind.MODEL_NOT_FOUND
    if isinstance(error, ollama.ResponseError):
        if error.status_code == 404:
            return LLMErrorKind.MODEL_NOT_FOUND
        if error.status_code == 429:
            return LLMErrorKind.RATE_LIMITED
        if error.status_code in (401, 403):
            return LLMErrorKind.INVALID_API_KEY
    if isinstance(error, TimeoutError):
        return LLMErrorKind.REQUEST_TIMEOUT
    if isinstance(error, ConnectionError):
        return LLMErrorKind.CONNECTION_FAILED

    # ultimo tentativo: parole chiave nel messaggio (es. errori httpx)
    message = str(error).lower()
    if "timeout" in message or "timed out" in message:
        return LLMErrorKind.REQUEST_TIMEOUT
    if "429" in message or "rate limit" in message:
        return LLMErrorKind.RATE_LIMITED
    if "connect" in message or "connection" in message:
        return LLMErrorKind.CONNECTION_FAILED
    if "quota" in message:
        return LLMErrorKind.QUOTA_EXCEEDED
    return LLMErrorKind.UNKNOWN


class LLMService:
    """
    Servizio per interagire con LLM locali (Ollama o LM Studio).

    La disponibilita viene verificata una volta alla creazione
    (`is_available`); le chiamate successive hanno un timeout per richiesta.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: float = 0.0,
        timeout: float = 30.0,
        provider: Optional[str] = None,
        ollama_host: Optional[str] = None,
        lmstudio_base_url: Optional[str] = None,
        lmstudio_api_key: Optional[str] = None,
        check_availability: bool = True,
        verbose: bool = False,
    ):
        """
        Inizializza il servizio LLM.

        Args:
            model: Nome del modello (default: env JOBFIT_LLM_MODEL o "llama3.2")
            temperature: Temperatura di default
            timeout: Timeout in secondi per ogni chiamata
            provider: "ollama" o "lmstudio" (default: env JOBFIT_LLM_PROVIDER o "ollama")
            ollama_host: Host Ollama (default: env OLLAMA_HOST o quello della libreria)
            lmstudio_base_url: Base URL per LM Studio (default: env LMSTUDIO_BASE_URL)
            lmstudio_api_key: API key per LM Studio (default: env LMSTUDIO_API_KEY)
            check_availability: Se False non contatta il provider alla creazione
            verbose: Se True, stampa log
        """
        load_dotenv()
        self.verbose = verbose
        self.provider = (provider or os.getenv("JOBFIT_LLM_PROVIDER", "ollama")).lower()
        if self.provider not in {"ollama", "lmstudio"}:
            raise ValueError("provider deve essere 'ollama' o 'lmstudio'")

        self.model = model or os.getenv("JOBFIT_LLM_MODEL", "llama3.2")
        self.temperature = temperature
        self.timeout = timeout
        self.ollama_host = ollama_host or os.getenv("OLLAMA_HOST")
        self.lmstudio_base_url = lmstudio_base_url or os.getenv("LMSTUDIO_BASE_URL", "http://localhost:1234/v1")
        self.lmstudio_api_key = lmstudio_api_key or os.getenv("LMSTUDIO_API_KEY", "lmstudio")

        self.is_available = False
        self._unavailable_kind = LLMErrorKind.CONNECTION_FAILED
        self._ollama_client: Optional[ollama.Client] = None
        self._lmstudio_client: Optional[openai.OpenAI] = None

        if check_availability:
            if self.provider == "ollama":
                self._check_ollama()
            else:
                self._check_lmstudio()

    @property
    def description(self) -> str:
        return f"{self.provider}:{self.model}"

    # ═══════════════════════════════════════════════════════════════════
    # Client e verifica disponibilita
    # ═══════════════════════════════════════════════════════════════════

    def _get_ollama_client(self) -> ollama.Client:
        if self._ollama_client is None:
            self._ollama_client = ollama.Client(host=self.ollama_host, timeout=self.timeout)
        return self._ollama_client

    def _get_lmstudio_client(self) -> openai.OpenAI:
        """Crea (lazy) client OpenAI compatibile con LM Studio."""
        if self._lmstudio_client is None:
            self._lmstudio_client = openai.OpenAI(
                base_url=self.lmstudio_base_url,
                api_key=self.lmstudio_api_key,
                timeout=self.timeout,
                max_retries=0,      # i retry li gestisce RetryPolicy
            )
        return self._lmstudio_client

    def _model_listed(self, names) -> bool:
        return any(self.model in name or name.startswith(self.model) for name in names)

    def _check_ollama(self) -> None:
        """Verifica che Ollama sia in esecuzione e il modello sia disponibile."""
        try:
            models = self._get_ollama_client().list()
            names = [m.model for m in models.models] if models.models else []
        except Exception as e:
            self._unavailable_kind = classify_error(e)
            self._log(f"Ollama non raggiungibile ({e}). Avvialo con: ollama serve")
            return

        if not self._model_listed(names):
            self._unavailable_kind = LLMErrorKind.MODEL_NOT_FOUND
            self._log(f"Modello '{self.model}' non trovato. Modelli disponibili: {names}")
            self._log(f"Esegui: ollama pull {self.model}")
            return

        self.is_available = True
        self._log(f"LLM Service pronto (provider: ollama, modello: {self.model})")

    def _check_lmstudio(self) -> None:
        """Verifica che LM Studio sia raggiungibile e il modello caricato."""
        try:
            models = self._get_lmstudio_client().models.list()
            names = [m.id for m in models.data] if getattr(models, "data", None) else []
        except Exception as e:
            self._unavailable_kind = classify_error(e)
            self._log(f"LM Studio non raggiungibile: {e}")
            return

        if not self._model_listed(names):
            self._unavailable_kind = LLMErrorKind.MODEL_NOT_FOUND
            self._log(f"Modello '{self.model}' non trovato su LM Studio. Modelli disponibili: {names}")
            return

        self.is_available = True
        self._log(f"LLM Service pronto (provider: lmstudio, modello: {self.model})")

    # ═══════════════════════════════════════════════════════════════════
    # Generazione
    # ═══════════════════════════════════════════════════════════════════

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Genera testo dal prompt.

        Raises:
            LLMNotAvailableError: se il provider non e disponibile
            LLMError: per qualsiasi errore della chiamata, con il tipo classificato
        """
        if not self.is_available:
            raise LLMNotAvailableError(
                f"LLM non disponibile (provider={self.provider}, modello={self.model})",
                kind=self._unavailable_kind,
            )

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        temp = self.temperature if temperature is None else temperature

        try:
            if self.provider == "ollama":
                response = self._get_ollama_client().chat(
                    model=self.model,
                    messages=messages,
                    options={"temperature": temp},
                )
                content = response.message.content
            else:
                response = self._get_lmstudio_client().chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=temp,
                )
                content = response.choices[0].message.content
        except Exception as e:
            raise LLMError(f"Errore chiamata {self.provider}: {e}", kind=classify_error(e)) from e

        if content is None:
            raise LLMError("Risposta vuota dal modello", kind=LLMErrorKind.INVALID_RESPONSE)
        return content

    def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        """Genera e parsa JSON dal prompt; None se il parsing fallisce."""
        if "json" not in prompt.lower():
            prompt += "\n\nRespond ONLY with valid JSON, no other text."
        return self._extract_json(self.generate(prompt, system_prompt, temperature))

    def _extract_json(self, text: str) -> Optional[Dict[str, Any]]:
        """Estrae il primo oggetto JSON da testo che potrebbe contenere altro."""
        try:
            parsed = json.loads(text.strip())
            return parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            pass

        # primo oggetto {...} bilanciato
        start_idx = text.find("{")
        if start_idx != -1:
            depth = 0
            for i, char in enumerate(text[start_idx:], start_idx):
                if char == "{":
                    depth += 1
                elif char == "}":
                    depth -= 1
                    if depth == 0:
                        try:
                            return json.loads(text[start_idx:i + 1])
                        except json.JSONDecodeError:
                            break

        for pattern in (r"```json\s*([\s\S]*?)\s*```", r"```\s*([\s\S]*?)\s*```"):
            match = re.search(pattern, text)
            if match:
                try:
                    return json.loads(match.group(1))
                except json.JSONDecodeError:
                    continue
        return None

    # ═══════════════════════════════════════════════════════════════════
    # Inferenza skill
    # ═══════════════════════════════════════════════════════════════════

    def judge_skill_implication(
        self,
        candidate_skill: str,
        required_skill: str,
        prompt_template: Optional[str] = None,
    ) -> SkillImplicationDecision:
        """
        Chiede al modello se `candidate_skill` implica `required_skill`.

        Una risposta non interpretabile diventa una decisione negativa
        ("Parse error"); gli errori di chiamata invece risalgono come LLMError.
        """
        prompt = (prompt_template or IMPLICATION_PROMPT)
        prompt = prompt.replace("{candidate_skill}", candidate_skill).replace("{required_skill}", required_skill)

        data = self.generate_json(prompt, IMPLICATION_SYSTEM_PROMPT, temperature=0.0)
        if not data or "can_imply" not in data:
            self._log(f"Risposta non interpretabile per {candidate_skill} -> {required_skill}")
            return SkillImplicationDecision(can_imply=False, confidence=0.0, reasoning="Parse error")

        try:
            confidence = float(data.get("confidence", 0.0))
        except (TypeError, ValueError):
            confidence = 0.0
        return SkillImplicationDecision(
            can_imply=data["can_imply"] is True or str(data["can_imply"]).lower() == "true",
            confidence=max(0.0, min(1.0, confidence)),
            reasoning=str(data.get("reasoning", "")),
        )

    def _log(self, message: str) -> None:
        print_with_prefix("[LLMService]", message, enabled=self.verbose)
