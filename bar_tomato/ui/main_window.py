"""
Main window UI for Bar Tomato.
"""

import ttkbootstrap as ttk
from ttkbootstrap.constants import *
from typing import Callable, List, Optional, Tuple

from bar_tomato.core.scheduler import TickState
from bar_tomato.data.records import TodayStats
from bar_tomato.utils.constants import APP_NAME, TimerMode, TimerPhase
from bar_tomato.vault.projects import Project
from bar_tomato.vault.tasks import VaultTask
from bar_tomato.vault.time_format import format_time

NO_PROJECT = "(no project)"

PHASE_LABELS = {
    TimerPhase.IDLE: "IDLE",
    TimerPhase.RUNNING: "FOCUS",
    TimerPhase.PAUSED: "PAUSED",
    TimerPhase.SHORT_BREAK: "SHORT BREAK",
    TimerPhase.LONG_BREAK: "LONG BREAK",
}

PHASE_STYLES = {
    TimerPhase.RUNNING: "danger",
    TimerPhase.PAUSED: "warning",
    TimerPhase.SHORT_BREAK: "success",
    TimerPhase.LONG_BREAK: "success",
}


class MainWindow:
    """
    Main application window displaying timer and controls.
    """

    def __init__(
        self,
        root: ttk.Window,
        on_start_pomodoro: Callable,
        on_start_stopwatch: Callable,
        on_toggle_pause: Callable,
        on_complete: Callable,
        on_stop: Callable,
        on_skip_break: Callable,
        on_settings: Callable,
        on_refresh: Callable,
    ):
        """
        Initialize the main window.

        Args:
            root: The ttkbootstrap root window
            on_start_pomodoro: Callback when Pomodoro button clicked
            on_start_stopwatch: Callback when Stopwatch button clicked
            on_toggle_pause: Callback when Pause/Resume button clicked
            on_complete: Callback when Complete button clicked
            on_stop: Callback when Stop button clicked
            on_skip_break: Callback when Skip Break button clicked
            on_settings: Callback when Settings button clicked
            on_refresh: Callback to rescan projects and tasks
        """
        self.root = root
        self.on_start_pomodoro = on_start_pomodoro
        self.on_start_stopwatch = on_start_stopwatch
        self.on_toggle_pause = on_toggle_pause
        self.on_complete = on_complete
        self.on_stop = on_stop
        self.on_skip_break = on_skip_break
        self.on_settings = on_settings
        self.on_refresh = on_refresh

        self._current_phase: Optional[TimerPhase] = None
        self._projects: List[Project] = []
        self._setup_ui()
        self.update_state(TimerPhase.IDLE, TimerMode.POMODORO)

    def _setup_ui(self) -> None:
        """Set up the user interface."""
        # Configure window
        self.root.title(APP_NAME)
        self.root.geometry("420x520")
        self.root.resizable(False, False)

        # Main container
        self.main_frame = ttk.Frame(self.root, padding=15)
        self.main_frame.pack(fill=BOTH, expand=YES)

        # Timer display frame
        timer_frame = ttk.Frame(self.main_frame)
        timer_frame.pack(pady=10)

        self.timer_label = ttk.Label(
            timer_frame,
            text="25:00",
            font=("Helvetica", 56, "bold"),
            bootstyle="primary"
        )
        self.timer_label.pack()

        self.state_label = ttk.Label(
            timer_frame,
            text="IDLE",
            font=("Helvetica", 16),
            bootstyle="secondary"
        )
        self.state_label.pack(pady=(5, 0))

        self.progress_bar = ttk.Progressbar(
            self.main_frame,
            maximum=100,
            bootstyle="danger-striped",
            length=360
        )
        self.progress_bar.pack(pady=(10, 15))

        # Project / task selection
        select_frame = ttk.Labelframe(self.main_frame, text="Focus on", padding=10)
        select_frame.pack(fill=X)

        ttk.Label(select_frame, text="Project:").grid(row=0, column=0, sticky=W, pady=3)
        self.project_var = ttk.StringVar(value=NO_PROJECT)
        self.project_combo = ttk.Combobox(
            select_frame,
            textvariable=self.project_var,
            state="readonly",
            width=32
        )
        self.project_combo.grid(row=0, column=1, sticky=EW, padx=(8, 0), pady=3)

        ttk.Label(select_frame, text="Task:").grid(row=1, column=0, sticky=W, pady=3)
        self.task_var = ttk.StringVar()
        # Editable: free text or one of the vault's open tasks
        self.task_combo = ttk.Combobox(select_frame, textvariable=self.task_var, width=32)
        self.task_combo.grid(row=1, column=1, sticky=EW, padx=(8, 0), pady=3)
        select_frame.columnconfigure(1, weight=1)

        # Control buttons frame
        controls_frame = ttk.Frame(self.main_frame)
        controls_frame.pack(pady=15)

        self.pomodoro_btn = ttk.Button(
            controls_frame,
            text="Pomodoro",
            command=self.on_start_pomodoro,
            bootstyle="danger",
            width=10
        )
        self.pomodoro_btn.pack(side=LEFT, padx=4)

        self.stopwatch_btn = ttk.Button(
            controls_frame,
            text="Stopwatch",
            command=self.on_start_stopwatch,
            bootstyle="info",
            width=10
        )
        self.stopwatch_btn.pack(side=LEFT, padx=4)

        self.pause_btn = ttk.Button(
            controls_frame,
            text="Pause",
            command=self.on_toggle_pause,
            bootstyle="warning",
            width=10
        )

        self.complete_btn = ttk.Button(
            controls_frame,
            text="Complete",
            command=self.on_complete,
            bootstyle="success",
            width=10
        )

        self.stop_btn = ttk.Button(
            controls_frame,
            text="Stop",
            command=self.on_stop,
            bootstyle="secondary",
            width=10
        )

        self.skip_btn = ttk.Button(
            controls_frame,
            text="Skip Break",
            command=self.on_skip_break,
            bootstyle="info",
            width=10
        )

        self._controls = controls_frame

        # Today's stats
        self.stats_label = ttk.Label(
            self.main_frame,
            text="Today: 0 🍅 | 0hr0",
            font=("Helvetica", 12),
            bootstyle="info"
        )
        self.stats_label.pack(pady=(5, 10))

        # Bottom buttons frame
        bottom_frame = ttk.Frame(self.main_frame)
        bottom_frame.pack(pady=(10, 0), fill=X)

        self.settings_btn = ttk.Button(
            bottom_frame,
            text="Settings",
            command=self.on_settings,
            bootstyle="secondary-outline",
            width=15
        )
        self.settings_btn.pack(side=LEFT, padx=5, expand=YES)

        self.refresh_btn = ttk.Button(
            bottom_frame,
            text="Refresh Vault",
            command=self.on_refresh,
            bootstyle="secondary-outline",
            width=15
        )
        self.refresh_btn.pack(side=RIGHT, padx=5, expand=YES)

    def _show_buttons(self, *buttons: ttk.Button) -> None:
        for child in self._controls.winfo_children():
            child.pack_forget()
        for button in buttons:
            button.pack(side=LEFT, padx=4)

    def update_tick(self, state: TickState) -> None:
        """
        Update the display from a scheduler tick.

        Args:
            state: Display state computed by the scheduler
        """
        self.update_state(state.phase, state.mode)
        if state.phase == TimerPhase.IDLE:
            return

        text = state.display.replace("☕", "").replace("⏸", "").strip()
        self.timer_label.config(text=text or "00:00")

        if state.progress is None:
            self.progress_bar.config(mode="indeterminate", value=0)
        else:
            self.progress_bar.config(mode="determinate", value=state.progress)

    def update_state(self, phase: TimerPhase, mode: TimerMode) -> None:
        """
        Update the state label and button set when the phase changes.

        Args:
            phase: Current timer phase
            mode: Current timer mode
        """
        if phase == self._current_phase:
            return
        self._current_phase = phase

        label = PHASE_LABELS[phase]
        if phase == TimerPhase.RUNNING and mode == TimerMode.STOPWATCH:
            label = "STOPWATCH"
        style = PHASE_STYLES.get(phase, "secondary")
        self.state_label.config(text=label, bootstyle=style)
        self.timer_label.config(bootstyle=style if phase != TimerPhase.IDLE else "primary")

        selecting = phase == TimerPhase.IDLE
        combo_state = "readonly" if selecting else DISABLED
        self.project_combo.config(state=combo_state)
        self.task_combo.config(state=NORMAL if selecting else DISABLED)

        if phase == TimerPhase.IDLE:
            self._show_buttons(self.pomodoro_btn, self.stopwatch_btn)
            self.progress_bar.config(mode="determinate", value=0)
        elif phase == TimerPhase.RUNNING:
            self.pause_btn.config(text="Pause")
            if mode == TimerMode.POMODORO:
                self._show_buttons(self.pause_btn, self.complete_btn, self.stop_btn)
            else:
                self._show_buttons(self.pause_btn, self.stop_btn)
        elif phase == TimerPhase.PAUSED:
            self.pause_btn.config(text="Resume")
            self._show_buttons(self.pause_btn, self.stop_btn)
        else:
            self._show_buttons(self.skip_btn)

    def set_idle_time(self, minutes: int) -> None:
        """Show the pomodoro length while idle."""
        if self._current_phase == TimerPhase.IDLE:
            self.timer_label.config(text=f"{minutes:02d}:00")

    def set_projects(self, projects: List[Project]) -> None:
        self._projects = projects
        self.project_combo.config(values=[NO_PROJECT] + [p.display_name for p in projects])
        if self.project_var.get() not in self.project_combo.cget("values"):
            self.project_var.set(NO_PROJECT)

    def set_tasks(self, tasks: List[VaultTask]) -> None:
        self.task_combo.config(values=[t.text for t in tasks])

    def selection(self) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """
        Current task and project selection.

        Returns:
            (task, project display name, project README path)
        """
        task = self.task_var.get().strip() or None
        chosen = self.project_var.get()
        for project in self._projects:
            if project.display_name == chosen:
                return task, project.display_name, project.readme_path
        return task, None, None

    def update_stats(self, stats: Optional[TodayStats]) -> None:
        """
        Update today's totals.

        Args:
            stats: Today's totals, or None when no vault is configured
        """
        if stats is None:
            self.stats_label.config(text="No vault configured")
            return
        self.stats_label.config(
            text=f"Today: {stats.pomodoro_count} 🍅 | {format_time(stats.total_minutes)}"
        )

    def show(self) -> None:
        """Show the main window."""
        self.root.deiconify()
        self.root.lift()
        self.root.focus_force()

    def hide(self) -> None:
        """Hide the main window (minimize to tray)."""
        self.root.withdraw()
