"""Template rendering and the default template catalogue."""

import logging
import re
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from huellitas.errors.exceptions import TemplateNotFoundError
from huellitas.models.enums import Category
from huellitas.models.notification import NotificationTemplate, RenderedText
from huellitas.repositories.template_repo import TemplateRepository

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def render_pattern(pattern: str, variables: Mapping[str, Any]) -> str:
    """Replace every ``{name}``; a missing or null variable renders as ''."""

    def _sub(match: re.Match) -> str:
        value = variables.get(match.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_sub, pattern)


def render_template(template: NotificationTemplate, variables: Mapping[str, Any]) -> RenderedText:
    return RenderedText(
        title=render_pattern(template.title_pattern, variables),
        body=render_pattern(template.body_pattern, variables),
    )


class TemplateResolver:
    """Resolves a template key against the active templates in the store."""

    def __init__(self, session: AsyncSession):
        self.repo = TemplateRepository(session)

    async def get_template(self, template_key: str) -> NotificationTemplate:
        row = await self.repo.get_active(template_key)
        if row is None:
            raise TemplateNotFoundError(template_key)
        return NotificationTemplate.model_validate(row)

    async def resolve(self, template_key: str, variables: Mapping[str, Any] | None = None) -> RenderedText:
        template = await self.get_template(template_key)
        return render_template(template, variables or {})


def _tpl(key: str, name: str, category: Category, title: str, body: str) -> dict:
    return {
        "template_key": key,
        "name": name,
        "category": category.value,
        "title_pattern": title,
        "body_pattern": body,
        "is_active": True,
    }


DEFAULT_TEMPLATES: tuple[dict, ...] = (
    _tpl(
        "transport_started", "Transporte iniciado", Category.TRANSPORT,
        "🚐 Transporte en camino: {dogName} llega en {eta} min",
        "El vehículo ya salió con {dogName}. Tiempo estimado de llegada: {eta} minutos.",
    ),
    _tpl(
        "transport_approaching", "Transporte cerca", Category.TRANSPORT,
        "📍 {dogName} está por llegar",
        "El transporte llegará en {minutes} minutos. Prepárate para recibir a {dogName}.",
    ),
    _tpl(
        "dog_picked_up", "Perro recogido", Category.TRANSPORT,
        "✅ {dogName} fue recogido",
        "El transporte recogió a {dogName} y va rumbo al colegio.",
    ),
    _tpl(
        "vaccine_due_soon", "Vacuna próxima", Category.MEDICAL,
        "💉 Vacuna próxima para {dogName}",
        "La vacuna {vaccineName} vence en {days} días. Agenda la cita con el veterinario.",
    ),
    _tpl(
        "medicine_reminder", "Recordatorio de medicina", Category.MEDICAL,
        "💊 Recordatorio de medicina para {dogName}",
        "Es hora de darle {medicineName} ({dosage}) a {dogName}.",
    ),
    _tpl(
        "behavior_alert", "Alerta de comportamiento", Category.BEHAVIOR,
        "⚠️ Alerta de comportamiento: {dogName}",
        "Se observó {behavior}. Recomendación: {recommendation}.",
    ),
    _tpl(
        "behavior_improvement", "Mejora de comportamiento", Category.BEHAVIOR,
        "🌟 ¡{dogName} está mejorando!",
        "Mejora de comportamiento en {area}: {details}",
    ),
    _tpl(
        "walk_reminder", "Recordatorio de paseo", Category.ROUTINE,
        "🦮 Hora del paseo de {dogName}",
        "Un paseo de {duration} minutos mantiene a {dogName} feliz y tranquilo.",
    ),
    _tpl(
        "weekly_tip", "Tip semanal", Category.TIPS,
        "💡 Tip de la semana",
        "{tip}",
    ),
)


async def seed_default_templates(session: AsyncSession) -> int:
    """Insert the default catalogue (idempotent).

    Returns the number of templates created (0 if all already exist).
    """
    repo = TemplateRepository(session)
    created = 0
    for definition in DEFAULT_TEMPLATES:
        if await repo.get(definition["template_key"]) is None:
            await repo.create(**definition)
            created += 1
    if created:
        logger.info("Seeded %d default notification templates", created)
    return created
