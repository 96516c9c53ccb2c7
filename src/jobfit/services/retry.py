"""
Retry con backoff esponenziale per le chiamate al modello esterno.

Una sola policy, applicata in un solo punto (ImplicationEngine, livello LLM).
Vengono ritentati solo gli errori transitori; tutti gli altri risalgono subito.
"""

import time
from typing import Callable, Optional, TypeVar

from jobfit.services.llm_service import LLMError, LLMErrorKind

T = TypeVar("T")

TRANSIENT_KINDS = frozenset({
    LLMErrorKind.CONNECTION_FAILED,
    LLMErrorKind.REQUEST_TIMEOUT,
    LLMErrorKind.RATE_LIMITED,
})


def is_transient_llm_error(error: BaseException) -> bool:
    """True per connessione fallita, timeout e rate limit."""
    return isinstance(error, LLMError) and error.kind in TRANSIENT_KINDS


class RetryPolicy:
    """
    Policy di retry: numero massimo di tentativi, curva di backoff e
    predicato che decide quali errori sono ritentabili.

    Il ritardo prima del tentativo n+1 e `base_delay * multiplier**n`,
    limitato a `max_delay`. Esauriti i tentativi viene rilanciato l'ultimo
    errore, cosi il chiamante vede il tipo originale.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        multiplier: float = 2.0,
        retryable: Callable[[BaseException], bool] = is_transient_llm_error,
        sleep: Callable[[float], None] = time.sleep,
        on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts deve essere >= 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self.retryable = retryable
        self._sleep = sleep
        self.on_retry = on_retry

    def is_retryable(self, error: BaseException) -> bool:
        return self.retryable(error)

    def delay_for(self, attempt: int) -> float:
        """Ritardo dopo il tentativo fallito numero `attempt` (da 0)."""
        return min(self.base_delay * (self.multiplier ** attempt), self.max_delay)

    def call(self, func: Callable[..., T], *args, **kwargs) -> T:
        for attempt in range(self.max_attempts):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if not self.is_retryable(e) or attempt == self.max_attempts - 1:
                    raise
                delay = self.delay_for(attempt)
                if self.on_retry:
                    self.on_retry(attempt + 1, e, delay)
                self._sleep(delay)
        # max_attempts >= 1: il ciclo ritorna o rilancia sempre
        raise AssertionError("unreachable")
