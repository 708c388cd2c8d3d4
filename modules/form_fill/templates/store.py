"""
Template store implementation.

Persists versioned mapping templates as one YAML file per template and
exchanges them with other installations as JSON interchange files.
"""

import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from modules.form_fill.config import get_form_fill_config
from modules.form_fill.core.exceptions import TemplateNotFoundException
from modules.form_fill.core.types import DOCUMENT_TYPES, Template
from modules.form_fill.templates.validator import ensure_valid
from shared.utils.helpers import sanitize_filename
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


EXPORT_VERSION = "1.0"
EDITABLE_FIELDS = ("name", "description", "documentType", "documentHash", "mappings", "conditionalRules")


def _now() -> str:
    return datetime.now().isoformat()


class TemplateStore:
    """
    Template store.

    Keeps a cache of every template in the directory; every mutation
    writes through to the template's YAML file.
    """

    def __init__(self, templates_dir: Optional[Path] = None):
        """
        Initialize template store.

        Args:
            templates_dir: Directory holding template YAML files (optional)
        """
        config = get_form_fill_config()
        self.templates_dir = Path(templates_dir or config.templates_dir)
        self.exports_dir = self.templates_dir / "exports"
        self.templates_dir.mkdir(parents=True, exist_ok=True)

        self._cache: Dict[str, Template] = {}
        self._load_all_templates()

        logger.info(f"Initialized TemplateStore with {len(self._cache)} templates")

    def _load_all_templates(self) -> None:
        """Load all templates from YAML files."""
        for yaml_file in sorted(self.templates_dir.glob("*.yaml")):
            try:
                with open(yaml_file, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)

                if not data:
                    logger.warning(f"Empty YAML file: {yaml_file}")
                    continue

                template = Template.model_validate(data)
                self._cache[template.id] = template

            except Exception as e:
                logger.error(f"Failed to load template from {yaml_file}: {e}")

    def _path_for(self, template_id: str) -> Path:
        return self.templates_dir / f"{template_id}.yaml"

    def _save(self, template: Template) -> None:
        with open(self._path_for(template.id), "w", encoding="utf-8") as f:
            yaml.safe_dump(template.to_dict(), f, default_flow_style=False, sort_keys=False)
        self._cache[template.id] = template

    def _require(self, template_id: str) -> Template:
        template = self._cache.get(template_id)
        if template is None:
            raise TemplateNotFoundException(f"Template with id {template_id} not found")
        return template

    # ==========================================================================
    # CRUD
    # ==========================================================================

    async def get_all_templates(self) -> List[Template]:
        return list(self._cache.values())

    async def get_template(self, template_id: str) -> Optional[Template]:
        return self._cache.get(template_id)

    async def create_template(self, template_data: Union[Template, Dict[str, Any]]) -> Template:
        """
        Create a template with a fresh id at version 1.

        Raises:
            TemplateValidationException: If the template is invalid
        """
        record = template_data.to_dict() if isinstance(template_data, Template) else dict(template_data)
        record = {k: v for k, v in record.items() if k in EDITABLE_FIELDS}
        record.setdefault("description", "")
        ensure_valid(record)

        timestamp = _now()
        template = Template.model_validate({
            **record,
            "id": str(uuid.uuid4()),
            "version": 1,
            "createdAt": timestamp,
            "updatedAt": timestamp,
        })

        self._save(template)
        logger.info(f"Created template: {template.id} - {template.name}")
        return template

    async def update_template(self, template_id: str, updates: Dict[str, Any]) -> Template:
        """
        Update a template in place: same id, version + 1, createdAt kept.

        Raises:
            TemplateNotFoundException: If the template does not exist
            TemplateValidationException: If the updated template is invalid
        """
        existing = self._require(template_id)

        record = existing.to_dict()
        record.update({k: v for k, v in updates.items() if k in EDITABLE_FIELDS})
        ensure_valid(record)

        record.update({
            "id": existing.id,
            "createdAt": existing.created_at,
            "updatedAt": _now(),
            "version": existing.version + 1,
        })
        template = Template.model_validate(record)

        self._save(template)
        logger.info(f"Updated template: {template.id} (version {template.version})")
        return template

    async def delete_template(self, template_id: str) -> bool:
        if template_id not in self._cache:
            return False

        del self._cache[template_id]
        path = self._path_for(template_id)
        if path.exists():
            path.unlink()

        logger.info(f"Deleted template: {template_id}")
        return True

    async def duplicate_template(self, template_id: str, new_name: Optional[str] = None) -> Template:
        original = self._require(template_id)
        record = original.to_dict()
        record["name"] = new_name or f"{original.name} (Copy)"
        return await self.create_template(record)

    # ==========================================================================
    # QUERIES
    # ==========================================================================

    async def get_templates_by_document_type(self, document_type: str) -> List[Template]:
        return [t for t in self._cache.values() if t.document_type == document_type]

    async def search_templates(self, query: str) -> List[Template]:
        """Case-insensitive substring search over name and description."""
        lowered = query.lower()
        return [
            t for t in self._cache.values()
            if lowered in t.name.lower() or lowered in (t.description or "").lower()
        ]

    async def get_template_statistics(self) -> Dict[str, Any]:
        templates = list(self._cache.values())
        recent = sorted(templates, key=lambda t: t.updated_at or "", reverse=True)[:5]

        return {
            "totalTemplates": len(templates),
            "byDocumentType": {
                document_type: sum(1 for t in templates if t.document_type == document_type)
                for document_type in DOCUMENT_TYPES
            },
            "recentTemplates": recent,
        }

    # ==========================================================================
    # INTERCHANGE
    # ==========================================================================

    async def export_template(self, template_id: str, export_dir: Optional[Path] = None) -> Path:
        """
        Write a template to a JSON interchange file.

        Returns:
            Path of the written file (<name>_template.json)
        """
        template = self._require(template_id)

        export_data = {
            **template.to_dict(),
            "exportedAt": _now(),
            "exportVersion": EXPORT_VERSION,
        }

        target_dir = Path(export_dir or self.exports_dir)
        target_dir.mkdir(parents=True, exist_ok=True)
        file_path = target_dir / f"{sanitize_filename(template.name)}_template.json"

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(export_data, f, indent=2)

        logger.info(f"Exported template {template_id} to {file_path}")
        return file_path

    async def import_template(self, file_path: Union[str, Path]) -> Template:
        """
        Create a template from a JSON or YAML interchange file.

        The imported template always gets a fresh id and starts at version 1.

        Raises:
            ValueError: If the file is not a template record
            TemplateValidationException: If the template is invalid
        """
        file_path = Path(file_path)
        with open(file_path, "r", encoding="utf-8") as f:
            if file_path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)

        if (
            not isinstance(data, dict)
            or not data.get("name")
            or not data.get("documentType")
            or not isinstance(data.get("mappings"), list)
        ):
            raise ValueError(f"Invalid template file format: {file_path}")

        template = await self.create_template({
            "name": data["name"],
            "description": data.get("description") or "",
            "documentType": data["documentType"],
            "documentHash": data.get("documentHash"),
            "mappings": data["mappings"],
            "conditionalRules": data.get("conditionalRules"),
        })
        logger.info(f"Imported template {template.id} from {file_path}")
        return template

    def reload(self) -> None:
        """Reload all templates from disk."""
        self._cache.clear()
        self._load_all_templates()
        logger.info(f"Reloaded {len(self._cache)} templates")
