import threading

import pytest
from matplotlib.figure import Figure

from moisturechart import MoistureChart
from moisturechart.inbox import ReadingInbox
from moisturechart.window import DataPoint


@pytest.fixture
def chart():
    chart = MoistureChart(fig=Figure(), window_ms=120_000, ordering="reject")
    yield chart
    chart.close()


class TestReadingInbox:

    def test_empty_drain(self, chart):
        assert ReadingInbox().drain_into(chart) == 0
        assert chart.series_names() == []

    def test_drain_applies_in_submission_order(self, chart):
        inbox = ReadingInbox()
        inbox.submit("A", 0, 10.0)
        inbox.submit("B", 1000, 20.0)
        inbox.submit("A", 130_000, 15.0)

        assert inbox.pending() == 3
        assert inbox.drain_into(chart) == 3
        assert inbox.pending() == 0
        assert chart.get_window("A") == [DataPoint(130_000, 15.0)]
        assert chart.get_window("B") == [DataPoint(1000, 20.0)]

    def test_out_of_order_reading_is_skipped_and_draining_continues(self, chart, capsys):
        inbox = ReadingInbox()
        inbox.submit("A", 5000, 1.0)
        inbox.submit("A", 1000, 2.0)
        inbox.submit("A", 6000, 3.0)

        assert inbox.drain_into(chart) == 2
        assert chart.get_window("A") == [DataPoint(5000, 1.0), DataPoint(6000, 3.0)]
        assert "Dropped out-of-order reading" in capsys.readouterr().out

    def test_fractional_timestamp_is_skipped(self, chart, capsys):
        inbox = ReadingInbox()
        inbox.submit("A", 1000, 1.0)
        inbox.submit("A", 1500.7, 2.0)
        inbox.submit("A", 2000, 3.0)

        assert inbox.drain_into(chart) == 2
        assert chart.get_window("A") == [DataPoint(1000, 1.0), DataPoint(2000, 3.0)]
        assert "Dropped invalid reading for 'A'" in capsys.readouterr().out

    def test_submit_coerces_types(self, chart):
        inbox = ReadingInbox()
        inbox.submit("A", 1000.0, 7)
        inbox.drain_into(chart)
        point = chart.get_window("A")[0]
        assert isinstance(point.timestamp, int)
        assert isinstance(point.value, float)

    def test_submit_from_producer_threads(self, chart):
        inbox = ReadingInbox()

        def produce(name):
            for t in range(0, 50_000, 1000):
                inbox.submit(name, t, 1.0)

        threads = [threading.Thread(target=produce, args=(name,)) for name in ("A", "B", "C")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert inbox.drain_into(chart) == 150
        assert sorted(chart.series_names()) == ["A", "B", "C"]
        assert all(len(chart.get_window(name)) == 50 for name in ("A", "B", "C"))
