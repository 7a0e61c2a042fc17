"""Find installed editors to open the models file with."""

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import List

from .const import DEFAULTS
from .logging import log
from .types import Result, ErrorInfo


@dataclass
class EditorCandidate:
    name: str
    cmd: str
    args: List[str] = field(default_factory=list)
    is_jetbrains: bool = False


KNOWN_EDITORS: List[EditorCandidate] = [
    EditorCandidate("VS Code", "code"),
    EditorCandidate("Cursor", "cursor"),
    EditorCandidate("Zed", "zed"),
    EditorCandidate("Neovim", "nvim"),
    EditorCandidate("IntelliJ IDEA", "idea", is_jetbrains=True),
    EditorCandidate("GoLand", "goland", is_jetbrains=True),
    EditorCandidate("PyCharm", "pycharm", is_jetbrains=True),
    EditorCandidate("CLion", "clion", is_jetbrains=True),
    EditorCandidate("WebStorm", "webstorm", is_jetbrains=True),
    EditorCandidate("PhpStorm", "phpstorm", is_jetbrains=True),
    EditorCandidate("DataGrip", "datagrip", is_jetbrains=True),
    EditorCandidate("RubyMine", "rubymine", is_jetbrains=True),
    EditorCandidate("Rider", "rider", is_jetbrains=True),
    EditorCandidate("DataSpell", "dataspell", is_jetbrains=True),
    # JetBrains universal launcher
    EditorCandidate("JetBrains (jb)", "jb", ["open"], is_jetbrains=True),
    EditorCandidate("Vim", "vim"),
    EditorCandidate("Nano", "nano"),
    EditorCandidate("Helix", "hx"),
    EditorCandidate("Micro", "micro"),
    EditorCandidate("Sublime Text", "subl"),
    EditorCandidate("TextMate", "mate"),
    EditorCandidate("Kakoune", "kak"),
    EditorCandidate("Emacs", "emacs"),
    EditorCandidate("Kate", "kate"),
]


def preferred_commands() -> List[str]:
    """Binary names from $VISUAL / $EDITOR, without path or flags."""
    prefs = []
    for env in ("VISUAL", "EDITOR"):
        value = os.environ.get(env, "").strip()
        if value:
            cmd = os.path.basename(value.split()[0])
            if cmd not in prefs:
                prefs.append(cmd)
    return prefs


def detect_editors(which=shutil.which) -> List[EditorCandidate]:
    prefs = preferred_commands()
    jb_on_path = which("jb") is not None

    found = []
    for cand in KNOWN_EDITORS:
        if which(cand.cmd) is None:
            continue
        # jb opens any JetBrains IDE; per-IDE launchers only when preferred
        if jb_on_path and cand.is_jetbrains and cand.cmd != "jb" and cand.cmd not in prefs:
            continue
        found.append(cand)

    known_cmds = {c.cmd for c in found}
    for cmd in prefs:
        if cmd not in known_cmds and which(cmd) is not None:
            found.append(EditorCandidate(cmd, cmd))

    # stable: preferred editors first, known-list order otherwise
    found.sort(key=lambda c: c.cmd not in prefs)
    return found[:DEFAULTS["MAX_EDITOR_OPTS"]]


def open_in_editor(editor: EditorCandidate, path: str) -> Result[None]:
    try:
        subprocess.Popen([editor.cmd, *editor.args, path])
    except OSError as e:
        log("ERROR", "editors", "open_failed", editor=editor.cmd, error=str(e))
        return Result(ok=False, error=ErrorInfo("editor.open_failed", str(e)))
    return Result(ok=True)
