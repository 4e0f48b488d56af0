"""Keyword classification of notification text into category and priority.

Matching is on literal lower-cased substrings of ``title + " " + message``.
Accents are not normalised: "vehículo" only matches with the accent, "critico"
does not match "crítico". Groups are tested in declaration order and the first
hit wins, so a text mentioning both a vaccine and a walk is ``medical``.
"""

from typing import Protocol

from huellitas.models.enums import Category, Priority
from huellitas.models.notification import Classification

CATEGORY_KEYWORDS: tuple[tuple[Category, tuple[str, ...]], ...] = (
    (Category.MEDICAL, ("vacuna", "medicina", "veterinario")),
    (Category.TRANSPORT, ("transporte", "recog", "vehículo")),
    (Category.BEHAVIOR, ("ansiedad", "comportamiento", "obediencia")),
    (Category.ROUTINE, ("paseo", "rutina", "horario")),
    (Category.TRAINING, ("tip", "consejo", "entrenamiento")),
)

PRIORITY_KEYWORDS: tuple[tuple[Priority, tuple[str, ...]], ...] = (
    (Priority.URGENT, ("urgente", "crítico", "vencida")),
    (Priority.HIGH, ("importante", "alerta", "vence")),
    (Priority.MEDIUM, ("recordatorio", "próxima")),
)

# Free-text categories older callers pass to the direct-insert path
_LEGACY_CATEGORY_MAP = {
    "test": Category.GENERAL,
    "prueba": Category.GENERAL,
    "debug": Category.GENERAL,
    "info": Category.GENERAL,
    "success": Category.GENERAL,
    "comparison": Category.GENERAL,
    "system": Category.GENERAL,
    "alert": Category.GENERAL,
    "improvement": Category.BEHAVIOR,
    "tip": Category.TIPS,
    "consejos": Category.TIPS,
}


class Classifier(Protocol):
    def classify(self, title: str, message: str) -> Classification: ...


def _content(title: str | None, message: str | None) -> str:
    return f"{title or ''} {message or ''}".lower()


def categorize(title: str | None, message: str | None) -> Category:
    content = _content(title, message)
    for category, keywords in CATEGORY_KEYWORDS:
        if any(k in content for k in keywords):
            return category
    return Category.GENERAL


def prioritize(title: str | None, message: str | None) -> Priority:
    content = _content(title, message)
    for priority, keywords in PRIORITY_KEYWORDS:
        if any(k in content for k in keywords):
            return priority
    return Priority.LOW


class KeywordClassifier:
    """Default classifier. Stateless; safe to share."""

    def classify(self, title: str | None, message: str | None) -> Classification:
        return Classification(category=categorize(title, message), priority=prioritize(title, message))


def normalize_category(raw: str | None) -> Category | None:
    """Map a caller-supplied category onto the enum. Unknown values become general."""
    if raw is None:
        return None
    key = raw.strip().lower()
    try:
        return Category(key)
    except ValueError:
        return _LEGACY_CATEGORY_MAP.get(key, Category.GENERAL)
