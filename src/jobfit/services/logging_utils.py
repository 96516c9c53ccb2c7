"""Output di log su console con prefisso per componente."""

import sys
from typing import Any, Callable, Iterable, Optional, TextIO, Tuple


def print_with_prefix(
    prefix: str,
    message: Optional[str],
    enabled: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """Stampa ogni riga del messaggio preceduta da `prefix` (no-op se disabilitato)."""
    if not enabled:
        return
    out = stream or sys.stdout
    text = "" if message is None else str(message)
    for line in text.splitlines() or [""]:
        out.write(f"{prefix} {line}\n" if line else f"{prefix}\n")
    out.flush()


def log_section(
    log_fn: Callable[[str], None],
    title: str,
    width: int = 60,
    char: str = "=",
) -> None:
    rule = char * width
    log_fn(rule)
    log_fn(title)
    log_fn(rule)


def log_fields(
    log_fn: Callable[[str], None],
    fields: Iterable[Tuple[str, Any]],
    indent: int = 3,
) -> None:
    """Stampa coppie etichetta/valore allineate in colonna."""
    fields = list(fields)
    if not fields:
        return
    label_width = max(len(label) for label, _ in fields) + 1
    pad = " " * indent
    for label, value in fields:
        log_fn(f"{pad}{(label + ':').ljust(label_width + 1)}{value}")
