"""Component templates: default, minimum and maximum sizes per component type."""
import logging
from typing import Dict, Iterator, Optional

from dashboard_layout.model.data_model import ComponentTemplate
from dashboard_layout.model.enums import ComponentCategory

logger = logging.getLogger(__name__)


class TemplateRegistry:
    def __init__(self, templates=()):
        self._templates: Dict[str, ComponentTemplate] = {}
        for template in templates:
            self.register(template)

    def register(self, template: ComponentTemplate) -> None:
        if not template.type:
            raise ValueError("Template type must not be empty")
        if template.type in self._templates:
            logger.debug("Replacing template for type '%s'", template.type)
        self._templates[template.type] = template

    def get(self, component_type: str) -> Optional[ComponentTemplate]:
        return self._templates.get(component_type)

    def __contains__(self, component_type) -> bool:
        return component_type in self._templates

    def __iter__(self) -> Iterator[ComponentTemplate]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)


def _chart(component_type: str, name: str) -> ComponentTemplate:
    return ComponentTemplate(
        type=component_type, name=name, category=ComponentCategory.CHART.value,
        default_size=(6, 4), min_size=(3, 2), max_size=(12, 12),
        default_config={"chart_type": component_type},
    )


DEFAULT_TEMPLATES = (
    ComponentTemplate(type="text", name="Text", category=ComponentCategory.TEXT.value,
                      default_size=(4, 2), min_size=(2, 1), max_size=(12, 8),
                      default_config={"content": "", "font_size": 14}),
    _chart("line", "Line Chart"),
    _chart("bar", "Bar Chart"),
    _chart("pie", "Pie Chart"),
    _chart("area", "Area Chart"),
    _chart("scatter", "Scatter Chart"),
    ComponentTemplate(type="table", name="Table", category=ComponentCategory.CONTAINER.value,
                      default_size=(8, 6), min_size=(4, 3), max_size=(12, 12),
                      default_config={"pagination": True, "page_size": 10}),
    ComponentTemplate(type="number", name="Metric", category=ComponentCategory.CHART.value,
                      default_size=(3, 2), min_size=(2, 1), max_size=(6, 4)),
    ComponentTemplate(type="image", name="Image", category=ComponentCategory.MEDIA.value,
                      default_size=(4, 3), min_size=(2, 2), max_size=(12, 8),
                      default_config={"fit": "cover"}),
    ComponentTemplate(type="iframe", name="Embedded Page", category=ComponentCategory.MEDIA.value,
                      default_size=(6, 4), min_size=(2, 2), max_size=(12, 12)),
    ComponentTemplate(type="container", name="Container", category=ComponentCategory.CONTAINER.value,
                      default_size=(12, 8), min_size=(4, 4), max_size=(12, 12),
                      default_config={"show_title": True}),
    ComponentTemplate(type="button", name="Button", category=ComponentCategory.CONTAINER.value,
                      default_size=(2, 1), min_size=(1, 1), max_size=(4, 2)),
    ComponentTemplate(type="divider", name="Divider", category=ComponentCategory.CONTAINER.value,
                      default_size=(12, 1), min_size=(2, 1), max_size=(12, 1),
                      default_config={"orientation": "horizontal"}),
)


def default_registry() -> TemplateRegistry:
    return TemplateRegistry(DEFAULT_TEMPLATES)
