import logging
from typing import Optional, Union

from dashboard_layout.app.autosave import AutosaveController
from dashboard_layout.app.store import LayoutStore
from dashboard_layout.model.data_model import Component
from dashboard_layout.model.enums import DesignerAction

logger = logging.getLogger(__name__)


class DesignerActions:
    """
    The operations bound to toolbar buttons and keyboard shortcuts.

    Key handling itself belongs to the UI; this only maps an action to the
    store call it stands for.
    """

    def __init__(self, store: LayoutStore, autosave: Optional[AutosaveController] = None):
        self.store = store
        self.autosave = autosave
        self._clipboard: Optional[Component] = None

    @property
    def clipboard(self) -> Optional[Component]:
        return self._clipboard

    def save(self) -> bool:
        if self.autosave is None:
            logger.debug("Save requested without a persistence backend")
            return False
        return self.autosave.save_now()

    def undo(self) -> bool:
        return self.store.undo()

    def redo(self) -> bool:
        return self.store.redo()

    def delete_selected(self) -> bool:
        selected = self.store.selected_id
        if selected is None:
            return False
        return self.store.remove_component(selected)

    def copy(self) -> bool:
        component = self.store.selected_component
        if component is None:
            return False
        # Snapshots are immutable, so holding the object is enough
        self._clipboard = component
        return True

    def paste(self) -> Optional[Component]:
        """Duplicate the clipboard under a new id at the first free cell."""
        source = self._clipboard
        if source is None:
            return None
        item = source.layout.get(self.store.snapshot.breakpoint) or next(iter(source.layout.values()), None)
        partial = {
            "type": source.type,
            "title": source.title,
            "config": source.config,
            "style": source.style,
        }
        if item is not None:
            partial.update(w=item.w, h=item.h, min_w=item.min_w, min_h=item.min_h,
                           max_w=item.max_w, max_h=item.max_h)
        return self.store.add_component(partial)

    def dispatch(self, action: Union[DesignerAction, str]):
        action = DesignerAction(action)
        handler = {
            DesignerAction.SAVE: self.save,
            DesignerAction.UNDO: self.undo,
            DesignerAction.REDO: self.redo,
            DesignerAction.DELETE: self.delete_selected,
            DesignerAction.COPY: self.copy,
            DesignerAction.PASTE: self.paste,
        }[action]
        logger.debug("Action: %s", action.value)
        return handler()
