"""Series bookkeeping: one window buffer and one render handle per name."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Tuple

from .config import WINDOW_DURATION_MS
from .plotting.base import PointListHandle
from .window import DataPoint, InsertResult, OrderingPolicy, WindowBuffer

if TYPE_CHECKING:
    from .plotting.base import RenderHandle


@dataclass
class SeriesEntry:
    """A series' buffer and the handle mirroring it."""

    buffer: WindowBuffer
    handle: RenderHandle


class SeriesRegistry:
    """Maps series names to their buffer and render handle.

    Buffers and handles are kept together in a single entry per name, and the
    handle is only ever changed here, from the buffer's contents.
    """

    def __init__(
        self,
        handle_factory: Optional[Callable[[str], RenderHandle]] = None,
        *,
        window_ms: int = WINDOW_DURATION_MS,
        ordering: OrderingPolicy | str = OrderingPolicy.REJECT,
    ) -> None:
        """Initialize the registry.

        Args:
            handle_factory: Creates (and registers with the renderer) the
                handle for a new series name. Defaults to an undrawn
                :class:`PointListHandle`.
            window_ms: Retention horizon for every buffer, in milliseconds
            ordering: Policy for timestamps older than a series' newest point
        """
        if window_ms <= 0:
            raise ValueError(f"Window duration must be positive, got {window_ms}.")
        self.handle_factory = handle_factory or PointListHandle
        self.window_ms = window_ms
        self.ordering = OrderingPolicy.parse(ordering)
        self._entries: Dict[str, SeriesEntry] = {}

    def ensure_series(self, name: str) -> SeriesEntry:
        """Return the entry for ``name``, creating it on first sight."""
        entry = self._entries.get(name)
        if entry is None:
            buffer = WindowBuffer(self.window_ms, ordering=self.ordering, name=name)
            entry = SeriesEntry(buffer=buffer, handle=self.handle_factory(name))
            self._entries[name] = entry
            print(f"[Series Registry] Created series '{name}' ({len(self._entries)} total)")
        return entry

    def insert(self, name: str, timestamp: int, value: float) -> InsertResult:
        """Add a reading to ``name`` and bring its handle in line with the buffer."""
        entry = self.ensure_series(name)
        result = entry.buffer.insert(timestamp, value)

        if result.tail_append:
            entry.handle.append(result.point)
        elif result.appended:
            entry.handle.set_points(entry.buffer.points())
        return result

    def get(self, name: str) -> Optional[WindowBuffer]:
        entry = self._entries.get(name)
        return entry.buffer if entry is not None else None

    def clear_all(self) -> None:
        """Empty every buffer and trace; names stay registered."""
        for entry in self._entries.values():
            entry.buffer.clear()
            entry.handle.clear()

    def names(self) -> List[str]:
        return list(self._entries)

    def items(self) -> Iterator[Tuple[str, List[DataPoint]]]:
        for name, entry in self._entries.items():
            yield name, entry.buffer.points()

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
