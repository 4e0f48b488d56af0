"""Notification template routes."""

import logging

from fastapi import APIRouter

from huellitas.dependencies import DBSession
from huellitas.errors.exceptions import ValidationError
from huellitas.models.notification import NotificationTemplate, TemplateUpsert
from huellitas.repositories.template_repo import TemplateRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Templates"])


@router.get("/templates", response_model=list[NotificationTemplate])
async def list_templates(db: DBSession) -> list[NotificationTemplate]:
    rows = await TemplateRepository(db).list_active()
    return [NotificationTemplate.model_validate(r) for r in rows]


@router.put("/templates/{template_key}", response_model=NotificationTemplate)
async def upsert_template(template_key: str, body: TemplateUpsert, db: DBSession) -> NotificationTemplate:
    try:
        candidate = NotificationTemplate(template_key=template_key, **body.model_dump())
    except ValueError as exc:
        raise ValidationError(f"Invalid template key '{template_key}'", {"reason": str(exc)}) from exc

    repo = TemplateRepository(db)
    fields = candidate.model_dump(exclude={"template_key"}, mode="json")
    existing = await repo.get(template_key)
    if existing:
        row = await repo.update(existing, **fields)
    else:
        row = await repo.create(template_key=template_key, **fields)
    await db.commit()
    logger.info("Template %s %s", template_key, "updated" if existing else "created")
    return NotificationTemplate.model_validate(row)
