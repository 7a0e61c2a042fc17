from pathlib import Path
from typing import List
from ..util.paths import CONFIG_DIR_NAME, home_config_dir
from ..util.types import Result, ErrorInfo

class ConfigDiscovery:
    def __init__(self, start_cwd: str) -> None:
        self.start_cwd = Path(start_cwd).resolve()

    def discover_stack(self) -> Result[List[str]]:
        """Return ordered list of .modelsync dirs from CWD→parents→home (highest→lowest priority)."""
        try:
            stack = []

            current = self.start_cwd
            while current != current.parent:
                cfg_dir = current / CONFIG_DIR_NAME
                if cfg_dir.is_dir():
                    stack.append(str(cfg_dir))
                current = current.parent

            home_dir = home_config_dir()
            if home_dir.is_dir() and str(home_dir) not in stack:
                stack.append(str(home_dir))

            return Result(ok=True, value=stack)
        except OSError as e:
            return Result(ok=False, error=ErrorInfo("discovery.failed", str(e)))
