import pytest

from dashboard_layout.app.store import LayoutStore
from dashboard_layout.config import DesignerConfig
from dashboard_layout.model.data_model import LayoutItem
from dashboard_layout.model.errors import DashboardNotFoundError


class FakeScheduler:
    """Collects scheduled tasks; tests fire them by hand."""

    def __init__(self):
        self.tasks = {}
        self.cancelled = []
        self._next = 0

    def schedule(self, delay_ms, task):
        self._next += 1
        self.tasks[self._next] = (delay_ms, task)
        return self._next

    def cancel(self, handle):
        self.cancelled.append(handle)
        self.tasks.pop(handle, None)

    @property
    def pending(self):
        return len(self.tasks)

    def fire(self):
        """Run every pending task, oldest first."""
        for handle in sorted(self.tasks):
            _, task = self.tasks.pop(handle)
            task()


class FakePersistence:
    def __init__(self):
        self.saved = []
        self.stored = {}
        self.fail_with = None

    def load(self, dashboard_id):
        if dashboard_id not in self.stored:
            raise DashboardNotFoundError(f"Dashboard '{dashboard_id}' not found")
        return self.stored[dashboard_id]

    def save(self, snapshot):
        if self.fail_with is not None:
            raise self.fail_with
        self.saved.append(snapshot)


def text(**overrides):
    partial = {"type": "text", "default_size": {"w": 4, "h": 2}}
    partial.update(overrides)
    return partial


def item(component_id, x, y, w, h, **kwargs):
    return LayoutItem(id=component_id, x=x, y=y, w=w, h=h, **kwargs)


@pytest.fixture
def store():
    return LayoutStore()


@pytest.fixture
def small_history_store():
    return LayoutStore(DesignerConfig(max_history=3))


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def persistence():
    return FakePersistence()
