"""
db/template_store.py
Signing templates kept as files in the templates folder shared with the signing service.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from certdesk.core.config import settings
from certdesk.models.request_model import TemplateFile


class TemplateStore:
    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory or settings.TEMPLATES_DIR)

    async def list_templates(self) -> List[TemplateFile]:
        if not self.directory.is_dir():
            return []
        paths = sorted(
            p for p in self.directory.iterdir()
            if p.is_file() and p.suffix.lower() == settings.TEMPLATE_EXTENSION
        )
        templates = []
        for path in paths:
            stat = path.stat()
            templates.append(
                TemplateFile(
                    name=path.name,
                    size=stat.st_size,
                    uploaded_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return templates

    async def exists(self, name: str) -> bool:
        return (self.directory / name).is_file()

    async def save(self, name: str, content: bytes) -> bool:
        """Write ``name``, replacing any file with that name. Returns True if one was replaced."""
        dest = self.directory / name
        replaced = dest.is_file()
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(content)
        return replaced

    async def delete(self, name: str) -> bool:
        dest = self.directory / name
        if not dest.is_file():
            return False
        dest.unlink()
        return True
