"""Per (user, dog) notification preference routes."""

from fastapi import APIRouter

from huellitas.dependencies import DBSession
from huellitas.models.preferences import Preference, PreferenceUpsert
from huellitas.repositories.preference_repo import PreferenceRepository

router = APIRouter(tags=["Preferences"])


@router.put("/users/{user_id}/preferences/{dog_id}", response_model=Preference)
async def set_preferences(user_id: str, dog_id: str, body: PreferenceUpsert, db: DBSession) -> Preference:
    fields = body.model_dump()
    fields["categories"] = {c.value: enabled for c, enabled in body.categories.items()}
    fields["priority_filter"] = body.priority_filter.value
    row = await PreferenceRepository(db).upsert(user_id, dog_id, **fields)
    await db.commit()
    return Preference.model_validate(row)


@router.get("/users/{user_id}/preferences", response_model=list[Preference])
async def list_preferences(user_id: str, db: DBSession) -> list[Preference]:
    rows = await PreferenceRepository(db).list_for_user(user_id)
    return [Preference.model_validate(r) for r in rows]
