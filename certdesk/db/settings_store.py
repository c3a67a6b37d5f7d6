"""
db/settings_store.py
Template Reference Store: one ``settings`` document naming the template used for signing.
"""
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

TEMPLATES_DOC_ID = "templates"


class SettingsStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.settings

    async def get_selected_template(self) -> Optional[str]:
        doc = await self.collection.find_one({"_id": TEMPLATES_DOC_ID})
        return doc.get("selected_template") if doc else None

    async def set_selected_template(self, template_name: Optional[str]) -> None:
        await self.collection.update_one(
            {"_id": TEMPLATES_DOC_ID},
            {"$set": {"selected_template": template_name}},
            upsert=True,
        )
