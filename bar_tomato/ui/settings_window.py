"""
Settings window for Bar Tomato.
"""

import ttkbootstrap as ttk
from ttkbootstrap.constants import *
from tkinter import filedialog, messagebox
from typing import Callable

from bar_tomato.core.commands import Commands
from bar_tomato.utils.errors import VaultValidationError


class SettingsWindow:
    """
    Settings dialog: vault folder, startup options and the vault's timer
    settings (read-only, they are edited in the Obsidian plugin).
    """

    def __init__(
        self,
        parent: ttk.Window,
        commands: Commands,
        on_save: Callable[[], None],
    ):
        """
        Initialize the settings window.

        Args:
            parent: Parent window
            commands: Command layer used to apply the settings
            on_save: Callback after settings are saved
        """
        self.parent = parent
        self.commands = commands
        self.on_save = on_save

        vault = commands.get_vault_path()
        self._original_vault = str(vault) if vault else ""

        self._setup_dialog()

    def _setup_dialog(self) -> None:
        """Set up the dialog UI."""
        self.dialog = ttk.Toplevel(self.parent)
        self.dialog.title("Settings")
        self.dialog.geometry("480x520")
        self.dialog.resizable(False, False)
        self.dialog.transient(self.parent)
        self.dialog.grab_set()

        main_frame = ttk.Frame(self.dialog, padding=20)
        main_frame.pack(fill=BOTH, expand=YES)

        # Vault Section
        vault_label = ttk.Label(
            main_frame,
            text="Obsidian Vault",
            font=("Helvetica", 14, "bold")
        )
        vault_label.pack(anchor=W, pady=(0, 10))

        vault_frame = ttk.Labelframe(main_frame, text="Folder", padding=10)
        vault_frame.pack(fill=X, pady=(0, 20))

        self.vault_var = ttk.StringVar(value=self._original_vault)
        vault_entry = ttk.Entry(vault_frame, textvariable=self.vault_var, width=34)
        vault_entry.pack(side=LEFT, fill=X, expand=YES)

        browse_btn = ttk.Button(
            vault_frame,
            text="Browse...",
            command=self._on_browse,
            bootstyle="secondary-outline"
        )
        browse_btn.pack(side=RIGHT, padx=(8, 0))

        # Timer settings read from the vault
        timer_label = ttk.Label(
            main_frame,
            text="Timer Settings",
            font=("Helvetica", 14, "bold")
        )
        timer_label.pack(anchor=W, pady=(0, 10))

        timer_frame = ttk.Labelframe(main_frame, text="From lifeos-pro", padding=10)
        timer_frame.pack(fill=X, pady=(0, 20))

        config = self.commands.get_config()
        rows = [
            ("Pomodoro (minutes):", config.pomodoro_duration),
            ("Short break (minutes):", config.short_break_duration),
            ("Long break (minutes):", config.long_break_duration),
            ("Long break every:", f"{config.long_break_interval} pomodoros"),
            ("Auto start break:", "Yes" if config.auto_start_break else "No"),
            ("Sound:", "On" if config.pomodoro_sound else "Off"),
        ]
        for text, value in rows:
            row = ttk.Frame(timer_frame)
            row.pack(fill=X, pady=2)
            ttk.Label(row, text=text).pack(side=LEFT)
            ttk.Label(row, text=str(value), bootstyle="info").pack(side=RIGHT)

        # System Settings Section
        system_label = ttk.Label(
            main_frame,
            text="System Settings",
            font=("Helvetica", 14, "bold")
        )
        system_label.pack(anchor=W, pady=(0, 10))

        system_frame = ttk.Labelframe(main_frame, text="Startup", padding=10)
        system_frame.pack(fill=X, pady=(0, 20))

        self._original_autostart = self.commands.get_autostart()
        self.autostart_var = ttk.BooleanVar(value=self._original_autostart)
        autostart_check = ttk.Checkbutton(
            system_frame,
            text="Start at login",
            variable=self.autostart_var,
            bootstyle="round-toggle"
        )
        autostart_check.pack(anchor=W, pady=5)

        self.minimized_var = ttk.BooleanVar(value=self.commands.app_config.start_minimized)
        minimized_check = ttk.Checkbutton(
            system_frame,
            text="Start minimized to tray",
            variable=self.minimized_var,
            bootstyle="round-toggle"
        )
        minimized_check.pack(anchor=W, pady=5)

        # Buttons
        buttons_frame = ttk.Frame(main_frame)
        buttons_frame.pack(fill=X, pady=(10, 0))

        cancel_btn = ttk.Button(
            buttons_frame,
            text="Cancel",
            command=self.dialog.destroy,
            bootstyle="secondary",
            width=12
        )
        cancel_btn.pack(side=LEFT)

        save_btn = ttk.Button(
            buttons_frame,
            text="Save",
            command=self._on_save,
            bootstyle="success",
            width=12
        )
        save_btn.pack(side=RIGHT)

    def _on_browse(self) -> None:
        folder = filedialog.askdirectory(
            parent=self.dialog,
            title="Choose your Obsidian vault",
            initialdir=self.vault_var.get() or None,
        )
        if folder:
            self.vault_var.set(folder)

    def _on_save(self) -> None:
        """Handle save button click."""
        vault = self.vault_var.get().strip()
        if vault and vault != self._original_vault:
            try:
                self.commands.set_vault_path(vault)
            except VaultValidationError as e:
                messagebox.showerror("Invalid Vault", str(e), parent=self.dialog)
                return
            except OSError as e:
                messagebox.showerror("Settings", f"Could not save settings:\n{e}", parent=self.dialog)
                return

        if self.autostart_var.get() != self._original_autostart:
            if not self.commands.set_autostart(self.autostart_var.get()):
                messagebox.showwarning(
                    "Autostart",
                    "Could not change the start-at-login setting.",
                    parent=self.dialog
                )

        app_config = self.commands.app_config
        if app_config.start_minimized != self.minimized_var.get():
            app_config.start_minimized = self.minimized_var.get()
            self.commands.save_app_config()

        self.on_save()
        self.dialog.destroy()
