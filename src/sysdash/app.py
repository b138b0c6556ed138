"""sysdash - Main Textual application."""

import logging
from datetime import datetime, timezone
from enum import Enum

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.css.query import NoMatches
from textual.widgets import DataTable, Footer, Header, Sparkline, Static

from sysdash.config import REFRESH_INTERVAL_SECONDS
from sysdash.generator import MockMetricsGenerator
from sysdash.history import HistoryBuffer, TimeRange
from sysdash.log_config import setup_logger
from sysdash.models import HistorySample, ProcessSnapshot, Snapshot
from sysdash.persistence import JsonFilePersistence
from sysdash.scheduler import RefreshScheduler
from sysdash.store import MetricsStore

logger = logging.getLogger(__name__)


class SortKey(Enum):
    """Sort keys for the process table."""

    NAME = "name"
    PID = "pid"
    CPU = "cpu"
    MEM = "mem"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def render_bar(percent: float, color: str, width: int = 20) -> str:
    """Render a percentage as a fixed-width markup bar."""
    filled = min(max(int(percent * width / 100), 0), width)
    # Escaped bracket opens the bar container
    return f"\\[[{color}]{'█' * filled}[/{color}][dim]{'░' * (width - filled)}[/dim]]"


def format_uptime(seconds: float) -> str:
    """Format an uptime as days, hours and minutes."""
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    minutes = int((seconds % 3600) // 60)
    return f"{days}d {hours}h {minutes}m"


class MetricsPanel(Static):
    """Panel showing the current CPU, memory, disk and uptime figures."""

    DEFAULT_CSS = """
    MetricsPanel {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize MetricsPanel."""
        super().__init__(*args, **kwargs)
        self._current: Snapshot | None = None

    @property
    def snapshot(self) -> Snapshot | None:
        """Get the snapshot currently displayed."""
        return self._current

    def compose(self) -> ComposeResult:
        """Compose the panel layout."""
        yield Horizontal(
            Static(self._get_usage_info(), id="usage-info"),
            Static(self._get_system_info(), id="system-info"),
        )

    def update_metrics(self, snapshot: Snapshot) -> None:
        """Show the figures from a snapshot."""
        self._current = snapshot
        try:
            self.query_one("#usage-info", Static).update(self._get_usage_info())
            self.query_one("#system-info", Static).update(self._get_system_info())
        except NoMatches:
            pass  # Widget not mounted yet

    def _get_usage_info(self) -> str:
        if self._current is None:
            return "Loading system metrics..."
        cpu = self._current.cpu
        memory = self._current.memory
        disk = self._current.disk
        return (
            f"CPU  {render_bar(cpu.usage_percent, 'green')} {cpu.usage_percent:5.1f}%\n"
            f"Mem  {render_bar(memory.usage_percent, 'cyan')} {memory.usage_percent:5.1f}%"
            f"  {memory.used_gb:.1f} GB of {memory.total_gb:g} GB\n"
            f"Disk {render_bar(disk.usage_percent, 'yellow')} {disk.usage_percent:5.1f}%"
            f"  {disk.used_gb:g} GB of {disk.total_gb:g} GB"
        )

    def _get_system_info(self) -> str:
        if self._current is None:
            return ""
        cpu = self._current.cpu
        system = self._current.system
        return (
            f"Uptime: {format_uptime(system.uptime_seconds)}\n"
            f"Total memory: {self._current.memory.total_gb:g} GB\n"
            f"Cores: {cpu.cores}  Temp: {cpu.temperature_c:g}°C\n"
            f"Processes: {system.process_count}"
        )


class UsageChart(Container):
    """CPU and memory sparklines over a selectable time window."""

    DEFAULT_CSS = """
    UsageChart {
        height: auto;
        padding: 0 1;
        border: solid $primary;
    }

    UsageChart Sparkline {
        height: 3;
        margin-bottom: 1;
    }
    """

    def __init__(self, history: HistoryBuffer, *args, **kwargs) -> None:
        """Initialize UsageChart."""
        super().__init__(*args, **kwargs)
        self._history = history
        self._time_range = TimeRange.HOUR
        self._plotted: list[HistorySample] = []

    @property
    def time_range(self) -> TimeRange:
        """Get the selected time window."""
        return self._time_range

    @property
    def visible_samples(self) -> list[HistorySample]:
        """Get the samples currently plotted."""
        return list(self._plotted)

    def compose(self) -> ComposeResult:
        """Compose the chart."""
        yield Static(self._get_title(), id="chart-title")
        yield Static("CPU usage")
        yield Sparkline([], summary_function=max, id="cpu-sparkline")
        yield Static("Memory usage")
        yield Sparkline([], summary_function=max, id="memory-sparkline")

    def cycle_range(self) -> TimeRange:
        """Cycle to the next time window and return it."""
        self._time_range = self._time_range.next()
        return self._time_range

    def refresh_chart(self, now: datetime) -> None:
        """Redraw the sparklines from the samples inside the window."""
        self._plotted = self._history.window(self._time_range, now)
        try:
            self.query_one("#chart-title", Static).update(self._get_title())
            self.query_one("#cpu-sparkline", Sparkline).data = [s.cpu_percent for s in self._plotted]
            self.query_one("#memory-sparkline", Sparkline).data = [
                s.memory_percent for s in self._plotted
            ]
        except NoMatches:
            pass  # Widget not mounted yet

    def _get_title(self) -> str:
        return f"Resource Usage History (last {self._time_range.value}, {len(self._plotted)} samples)"


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._processes: list[ProcessSnapshot] | None = None  # None until the first snapshot
        self._sort_key: SortKey = SortKey.CPU
        self._sort_reverse: bool = True  # Default: descending

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    @property
    def sort_reverse(self) -> bool:
        """Check if the table is sorted descending."""
        return self._sort_reverse

    def sort_by(self, key: SortKey) -> None:
        """Sort by `key`; selecting the current key again flips the direction."""
        if key == self._sort_key:
            self._sort_reverse = not self._sort_reverse
        else:
            self._sort_key = key
            self._sort_reverse = True
        self._render_rows()

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        next_index = (keys.index(self._sort_key) + 1) % len(keys)
        self.sort_by(keys[next_index])
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield Static(self._get_heading(), id="process-count")
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("Process Name", key=SortKey.NAME.value, width=20)
        table.add_column("PID", key=SortKey.PID.value, width=8)
        table.add_column("CPU %", key=SortKey.CPU.value, width=8)
        table.add_column("Memory %", key=SortKey.MEM.value, width=10)

    def on_data_table_header_selected(self, event: DataTable.HeaderSelected) -> None:
        """Sort by the clicked column."""
        event.stop()
        self.sort_by(SortKey(event.column_key.value))

    def update_processes(self, processes: list[ProcessSnapshot] | tuple[ProcessSnapshot, ...]) -> None:
        """Replace the table contents with new process data."""
        self._processes = list(processes)
        self._render_rows()

    def _sort_processes(self, processes: list[ProcessSnapshot]) -> list[ProcessSnapshot]:
        """Sort processes based on the current sort key."""
        key_func = {
            SortKey.NAME: lambda p: p.name.lower(),
            SortKey.PID: lambda p: p.pid,
            SortKey.CPU: lambda p: p.cpu_percent,
            SortKey.MEM: lambda p: p.memory_percent,
        }
        return sorted(processes, key=key_func[self._sort_key], reverse=self._sort_reverse)

    def _render_rows(self) -> None:
        try:
            table = self.query_one("#process-table", DataTable)
            count = self.query_one("#process-count", Static)
        except NoMatches:
            return  # Widget not mounted yet

        # Rows are rebuilt so the display order follows the sort
        table.clear()
        for proc in self._sort_processes(self._processes or []):
            table.add_row(
                proc.name,
                str(proc.pid),
                f"{proc.cpu_percent:5.1f}",
                f"{proc.memory_percent:5.1f}",
                key=str(proc.pid),
            )
        count.update(self._get_heading())

    def _get_heading(self) -> str:
        if self._processes is None:
            return "Top Processes  (Loading processes...)"
        direction = "desc" if self._sort_reverse else "asc"
        return (
            f"Top Processes  ({len(self._processes)} processes, "
            f"sorted by {self._sort_key.value} {direction})"
        )


class SysdashApp(App):
    """Main sysdash application."""

    TITLE = "sysdash"
    SUB_TITLE = "System Resource Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #refresh-status {
        height: 1;
        padding: 0 1;
        background: $boost;
    }

    Horizontal {
        height: auto;
    }

    #usage-info {
        width: 2fr;
        padding-right: 2;
    }

    #system-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh", "Collect now"),
        ("a", "toggle_auto_refresh", "Auto-refresh"),
        ("t", "cycle_range", "Time range"),
        ("s", "sort", "Sort"),
        ("d", "toggle_theme", "Theme"),
    ]

    def __init__(
        self,
        store: MetricsStore | None = None,
        refresh_interval: float = REFRESH_INTERVAL_SECONDS,
        auto_refresh: bool = True,
    ) -> None:
        """
        Initialize the SysdashApp.

        Args:
            store: Metrics source. Defaults to mock metrics persisted to a
                JSON file in the temp directory.
            refresh_interval: Seconds between automatic refreshes.
            auto_refresh: Whether automatic refresh starts enabled.
        """
        super().__init__()
        self._store = store or MetricsStore(MockMetricsGenerator(), JsonFilePersistence())
        self._history = HistoryBuffer()
        self._snapshot: Snapshot | None = None
        self._pending_fetches = 0  # Fetches may overlap
        self._last_update: datetime | None = None
        self._scheduler = RefreshScheduler(
            lambda: self.fetch_metrics(force_refresh=True),
            refresh_interval,
            auto_refresh=auto_refresh,
        )

    @property
    def snapshot(self) -> Snapshot | None:
        """Get the latest snapshot, None until the first fetch completes."""
        return self._snapshot

    @property
    def history(self) -> HistoryBuffer:
        """Get the usage history."""
        return self._history

    @property
    def scheduler(self) -> RefreshScheduler:
        """Get the refresh scheduler."""
        return self._scheduler

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Header()
        yield Static(self._get_status(), id="refresh-status")
        yield MetricsPanel(id="metrics-panel")
        yield UsageChart(self._history, id="usage-chart")
        yield ProcessTable()
        yield Footer()

    def on_mount(self) -> None:
        """Fetch the first snapshot and start auto-refresh."""
        self.run_worker(self.fetch_metrics(), name="initial-fetch")
        self._scheduler.start()
        self._update_status()

    def on_unmount(self) -> None:
        """Stop the scheduler when the app goes away."""
        self._scheduler.close()

    async def fetch_metrics(self, force_refresh: bool = False) -> None:
        """Fetch a snapshot from the store, record it and refresh the UI."""
        self._pending_fetches += 1
        self._update_status()
        try:
            snapshot = await self._store.get(force_refresh=force_refresh)
        except Exception:
            # The dashboard must never crash on a failed refresh
            logger.exception("Error fetching metrics")
            return
        finally:
            self._pending_fetches -= 1
            self._update_status()

        now = utcnow()
        self._snapshot = snapshot
        self._last_update = now
        self._history.append(HistorySample.from_snapshot(snapshot, now))
        self._update_ui(snapshot, now)

    def _update_ui(self, snapshot: Snapshot, now: datetime) -> None:
        """Update the UI with the new snapshot."""
        try:
            self.query_one("#metrics-panel", MetricsPanel).update_metrics(snapshot)
            self.query_one("#usage-chart", UsageChart).refresh_chart(now)
            self.query_one(ProcessTable).update_processes(snapshot.processes)
        except NoMatches:
            logger.debug("Skipping UI update, widgets not mounted")
        self._update_status()

    def _get_status(self) -> str:
        auto = "ON" if self._scheduler.running else "OFF"
        if self._pending_fetches:
            state = "Collecting..."
        elif self._last_update is None:
            state = "Waiting for first snapshot"
        else:
            state = f"Last update: {self._last_update.astimezone():%H:%M:%S}"
        return f"Auto-refresh: {auto}  |  {state}"

    def _update_status(self) -> None:
        try:
            self.query_one("#refresh-status", Static).update(self._get_status())
        except NoMatches:
            pass

    def action_refresh(self) -> None:
        """Collect a fresh snapshot now."""
        self._scheduler.manual_refresh()

    def action_toggle_auto_refresh(self) -> None:
        """Switch automatic refresh on or off."""
        running = self._scheduler.toggle()
        self._update_status()
        self.notify(f"Auto-refresh: {'ON' if running else 'OFF'}")

    def action_cycle_range(self) -> None:
        """Cycle the chart time window."""
        chart = self.query_one("#usage-chart", UsageChart)
        new_range = chart.cycle_range()
        chart.refresh_chart(utcnow())
        self.notify(f"Time range: {new_range.value}")

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        process_table = self.query_one(ProcessTable)
        new_sort_key = process_table.cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def action_toggle_theme(self) -> None:
        """Switch between the light and dark themes."""
        self.theme = "textual-light" if self.theme == "textual-dark" else "textual-dark"

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._scheduler.close()
        self.exit()


def main() -> None:
    """Entry point for sysdash application."""
    setup_logger()
    app = SysdashApp()
    app.run()


if __name__ == "__main__":
    main()
