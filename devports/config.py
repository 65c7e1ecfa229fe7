"""devports configuration. All tunables in one place."""

import os
import shutil
import sys
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _tool(env_var: str, name: str, fallback: str) -> str:
    return os.environ.get(env_var) or shutil.which(name) or fallback


def _default_editor() -> list[str]:
    override = os.environ.get("DEVPORTS_EDITOR")
    if override:
        return override.split()
    if sys.platform == "darwin":
        return ["/usr/bin/open", "-a", "Visual Studio Code"]
    return ["code"]


@dataclass
class ToolsConfig:
    lsof_path: str = field(default_factory=lambda: _tool("DEVPORTS_LSOF", "lsof", "/usr/sbin/lsof"))
    ps_path: str = field(default_factory=lambda: _tool("DEVPORTS_PS", "ps", "/bin/ps"))
    kill_path: str = field(default_factory=lambda: _tool("DEVPORTS_KILL", "kill", "/bin/kill"))
    env_path: str = field(default_factory=lambda: _tool("DEVPORTS_ENV", "env", "/usr/bin/env"))
    command_timeout_s: float = field(
        default_factory=lambda: float(os.environ.get("DEVPORTS_COMMAND_TIMEOUT", "10"))
    )


@dataclass
class ScannerConfig:
    # 0 disables the timer
    auto_refresh_s: float = field(
        default_factory=lambda: float(os.environ.get("DEVPORTS_AUTO_REFRESH", "10"))
    )
    max_concurrent_lookups: int = 8
    kill_settle_delay_s: float = 0.0
    restart_settle_delay_s: float = 2.0


@dataclass(frozen=True)
class PortHint:
    """Weak prior: a port range plus a process-name fragment implies a project type."""

    low: int
    high: int
    name_fragment: str
    project_type: str

    def matches(self, port: int, process_name: str) -> bool:
        return self.low <= port <= self.high and self.name_fragment in process_name.lower()


@dataclass
class ClassifierConfig:
    port_hints: list[PortHint] = field(
        default_factory=lambda: [
            PortHint(3000, 3999, "node", "react"),
            PortHint(8000, 8999, "python", "django"),
            PortHint(4000, 4999, "next", "nextjs"),
        ]
    )
    min_extension_files: int = 2


@dataclass
class EditorConfig:
    command: list[str] = field(default_factory=_default_editor)


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = field(default_factory=lambda: int(os.environ.get("DEVPORTS_PORT", "9010")))

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"


@dataclass
class Config:
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    editor: EditorConfig = field(default_factory=EditorConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


config = Config()
