import matplotlib

matplotlib.use("Agg")

import pytest
from matplotlib.figure import Figure

from moisturechart.plotting import ChartOptions, ChartPlotter, PointListHandle


class RecordingFactory:
    """Handle factory that remembers every handle it created."""

    def __init__(self):
        self.created = []

    def __call__(self, name):
        handle = PointListHandle(name)
        self.created.append(handle)
        return handle


@pytest.fixture
def handle_factory():
    return RecordingFactory()


@pytest.fixture
def figure():
    return Figure(figsize=(6, 4), dpi=80)


@pytest.fixture
def plotter(figure):
    return ChartPlotter(figure, ChartOptions(title="Test Chart", display_tz="UTC"))
