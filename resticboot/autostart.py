"""Register resticboot to start when the user logs in."""

from __future__ import annotations

import subprocess
from pathlib import Path

from .utils import Runner, SideEffectResult, run_command

WINDOWS_RUN_KEY = r"HKCU\Software\Microsoft\Windows\CurrentVersion\Run"
LAUNCH_AGENT_LABEL = "com.example.backup"

PLIST_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
    <key>Label</key><string>{label}</string>
    <key>ProgramArguments</key>
    <array><string>{executable}</string></array>
    <key>RunAtLoad</key><true/>
</dict>
</plist>
"""

DESKTOP_TEMPLATE = """\
[Desktop Entry]
Type=Application
Exec={executable}
Hidden=false
NoDisplay=false
X-GNOME-Autostart-enabled=true
Name=backup
Comment=Backup program
"""


def _register_windows(executable: Path, runner: Runner) -> None:
    result = run_command(
        ["reg", "add", WINDOWS_RUN_KEY, "/v", "backup", "/t", "REG_SZ", "/d", executable, "/f"],
        runner,
        capture=True,
    )
    if result.returncode != 0:
        msg = f"reg add exited with status {result.returncode}"
        raise OSError(msg)


def _write_entry(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def autostart_entry_path(os_name: str, home: Path) -> Path | None:
    """File the autostart entry is written to, None on Windows."""
    if os_name == "windows":
        return None
    if os_name == "darwin":
        return home / "Library" / "LaunchAgents" / f"{LAUNCH_AGENT_LABEL}.plist"
    return home / ".config" / "autostart" / "backup.desktop"


def ensure_autostart(
    executable: Path,
    os_name: str,
    home: Path | None = None,
    runner: Runner = subprocess.run,
) -> SideEffectResult:
    """Register ``executable`` to run at login. Failures come back as a result."""
    home = Path.home() if home is None else home
    executable = Path(executable).resolve()
    try:
        if os_name == "windows":
            _register_windows(executable, runner)
        elif os_name == "darwin":
            content = PLIST_TEMPLATE.format(label=LAUNCH_AGENT_LABEL, executable=executable)
            _write_entry(autostart_entry_path(os_name, home), content)
        else:
            content = DESKTOP_TEMPLATE.format(executable=executable)
            _write_entry(autostart_entry_path(os_name, home), content)
    except OSError as e:
        return SideEffectResult("autostart", ok=False, error=str(e))
    return SideEffectResult("autostart", ok=True)
