import copy
import json
import logging
from typing import Any, Dict

from dashboard_layout.model.data_model import BreakpointConfig, Snapshot
from dashboard_layout.model.errors import ComponentValidationError, SerializationError
from dashboard_layout.model.migrations import migrate_document
from dashboard_layout.model.validation import validate_snapshot
from dashboard_layout.version import APP_VERSION

logger = logging.getLogger(__name__)


class JsonExporter:
    """
    Snapshot <-> JSON document.

    Import is all-or-nothing: a malformed document raises SerializationError,
    an invalid one raises ComponentValidationError with every violation.
    """

    @staticmethod
    def to_document(snapshot: Snapshot) -> Dict[str, Any]:
        data = snapshot.to_dict()
        data["file_version"] = APP_VERSION
        return data

    @staticmethod
    def export_json(snapshot: Snapshot) -> str:
        return json.dumps(JsonExporter.to_document(snapshot), indent=4, ensure_ascii=False)

    @staticmethod
    def import_json(text: str, breakpoints: BreakpointConfig) -> Snapshot:
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            logger.warning("Import failed: not valid JSON (%s)", e)
            raise SerializationError(f"Document is not valid JSON: {e}") from e
        return JsonExporter.from_document(data, breakpoints)

    @staticmethod
    def from_document(data: Any, breakpoints: BreakpointConfig) -> Snapshot:
        if not isinstance(data, dict):
            raise SerializationError(f"Document must be a JSON object, got {type(data).__name__}")
        if not isinstance(data.get("components", []), list):
            raise SerializationError("'components' must be a list")

        try:
            data = migrate_document(copy.deepcopy(data), breakpoints)
            components = data.get("components", [])
            if any(not isinstance(c, dict) for c in components):
                raise SerializationError("Every component must be a JSON object")
            for c in components:
                layout = c.get("layout")
                if layout is not None and (
                        not isinstance(layout, dict) or any(not isinstance(i, dict) for i in layout.values())):
                    raise SerializationError(f"Component '{c.get('id')}' has a malformed layout")
            if not isinstance(data.get("settings") or {}, dict):
                raise SerializationError("'settings' must be a JSON object")
            if not isinstance(data.get("breakpoint", ""), str):
                raise SerializationError("'breakpoint' must be a string")
            if any(not isinstance(c.get("id", ""), str) for c in components):
                raise SerializationError("Component ids must be strings")
            snapshot = Snapshot.from_dict(data)
        except SerializationError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Import failed: malformed document (%s)", e)
            raise SerializationError(f"Malformed document: {e}") from e

        errors = validate_snapshot(snapshot, breakpoints)
        if errors:
            logger.warning("Import rejected with %d validation errors", len(errors))
            raise ComponentValidationError(errors)

        logger.info("Imported dashboard with %d components", len(snapshot.components))
        return snapshot

    @staticmethod
    def save_to_file(snapshot: Snapshot, filepath: str):
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(JsonExporter.to_document(snapshot), f, indent=4, ensure_ascii=False)

    @staticmethod
    def load_from_file(filepath: str, breakpoints: BreakpointConfig) -> Snapshot:
        with open(filepath, 'r', encoding='utf-8') as f:
            text = f.read()
        return JsonExporter.import_json(text, breakpoints)


def export_json(snapshot: Snapshot) -> str:
    return JsonExporter.export_json(snapshot)


def import_json(text: str, breakpoints: BreakpointConfig) -> Snapshot:
    return JsonExporter.import_json(text, breakpoints)
