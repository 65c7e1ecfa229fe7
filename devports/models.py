"""Connection records and project types produced by a port scan."""

from dataclasses import dataclass, replace
from enum import Enum


class Protocol(str, Enum):
    TCP = "tcp"
    UDP = "udp"
    UNKNOWN = "unknown"


class PortStatus(str, Enum):
    LISTENING = "listening"
    ESTABLISHED = "established"
    OTHER = "other"


class ProjectType(str, Enum):
    NEXTJS = "nextjs"
    REACT = "react"
    VUE = "vue"
    ANGULAR = "angular"
    SWIFT = "swift"
    KOTLIN = "kotlin"
    FLUTTER = "flutter"
    NODE = "node"
    PYTHON = "python"
    RUBY = "ruby"
    RAILS = "rails"
    GO = "go"
    RUST = "rust"
    DOTNET = "dotnet"
    JAVA = "java"
    PHP = "php"
    LARAVEL = "laravel"
    DJANGO = "django"
    UNKNOWN = "unknown"

    @property
    def style(self) -> "TypeStyle":
        return PROJECT_TYPE_TABLE[self]

    @property
    def display_name(self) -> str:
        return self.style.display_name

    @property
    def icon(self) -> str:
        return self.style.icon

    @property
    def color(self) -> str:
        return self.style.color

    @property
    def is_node_family(self) -> bool:
        return self in NODE_FAMILY

    @property
    def is_python_family(self) -> bool:
        return self in PYTHON_FAMILY


@dataclass(frozen=True)
class TypeStyle:
    display_name: str
    icon: str
    color: str
    # None: no fixed command; node and python families pick one from the project dir
    start_command: tuple[str, ...] | None = None


PROJECT_TYPE_TABLE: dict[ProjectType, TypeStyle] = {
    ProjectType.NEXTJS: TypeStyle("Next.js", "n.square.fill", "black"),
    ProjectType.REACT: TypeStyle("React", "atom", "blue"),
    ProjectType.VUE: TypeStyle("Vue", "v.square.fill", "green"),
    ProjectType.ANGULAR: TypeStyle("Angular", "a.square.fill", "red"),
    ProjectType.SWIFT: TypeStyle("Swift", "swift", "orange"),
    ProjectType.KOTLIN: TypeStyle("Kotlin", "k.square.fill", "purple"),
    ProjectType.FLUTTER: TypeStyle("Flutter", "f.square.fill", "blue"),
    ProjectType.NODE: TypeStyle("Node.js", "server.rack", "green"),
    ProjectType.PYTHON: TypeStyle("Python", "p.square.fill", "blue"),
    ProjectType.RUBY: TypeStyle("Ruby", "r.square.fill", "red"),
    ProjectType.RAILS: TypeStyle("Rails", "r.square.fill", "red", ("bin/rails", "server")),
    ProjectType.GO: TypeStyle("Go", "g.square.fill", "blue", ("go", "run", ".")),
    ProjectType.RUST: TypeStyle("Rust", "r.square.fill", "orange", ("cargo", "run")),
    ProjectType.DOTNET: TypeStyle(".NET", "network", "purple"),
    ProjectType.JAVA: TypeStyle("Java", "j.square.fill", "orange"),
    ProjectType.PHP: TypeStyle("PHP", "p.square.fill", "purple"),
    ProjectType.LARAVEL: TypeStyle("Laravel", "l.square.fill", "red", ("php", "artisan", "serve")),
    ProjectType.DJANGO: TypeStyle("Django", "d.square.fill", "green"),
    ProjectType.UNKNOWN: TypeStyle("Unknown", "folder.fill", "gray"),
}

NODE_FAMILY = frozenset(
    {ProjectType.NEXTJS, ProjectType.REACT, ProjectType.VUE, ProjectType.ANGULAR, ProjectType.NODE}
)
PYTHON_FAMILY = frozenset({ProjectType.PYTHON, ProjectType.DJANGO})

# Substring of the lowercased process name -> (icon, color). First hit wins.
PROCESS_STYLES: list[tuple[str, str, str]] = [
    ("node", "n.square.fill", "green"),
    ("python", "p.square.fill", "blue"),
    ("ruby", "r.square.fill", "red"),
    ("java", "j.square.fill", "orange"),
    ("nginx", "n.square.fill", "green"),
    ("apache", "a.square.fill", "red"),
    ("docker", "d.square.fill", "blue"),
    ("postgres", "server.rack", "blue"),
    ("mysql", "server.rack", "orange"),
]

STATUS_COLORS = {
    PortStatus.LISTENING: "green",
    PortStatus.ESTABLISHED: "blue",
    PortStatus.OTHER: "gray",
}


@dataclass(frozen=True)
class ProjectInfo:
    name: str
    type: ProjectType
    path: str | None = None

    @property
    def icon(self) -> str:
        return self.type.icon

    @property
    def color(self) -> str:
        return self.type.color

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type.value,
            "display_type": self.type.display_name,
            "path": self.path,
            "icon": self.icon,
            "color": self.color,
        }


@dataclass(frozen=True, eq=False)
class ConnectionRecord:
    """One open endpoint and its owning process. Same connection iff (port, pid) match."""

    port: int
    pid: int
    command: str
    user: str
    process_name: str = ""
    protocol: Protocol = Protocol.UNKNOWN
    status: PortStatus = PortStatus.OTHER
    project: ProjectInfo | None = None

    def __post_init__(self):
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port out of range: {self.port}")
        if not self.process_name:
            object.__setattr__(self, "process_name", self.command)

    @property
    def key(self) -> tuple[int, int]:
        return (self.port, self.pid)

    def __eq__(self, other):
        if not isinstance(other, ConnectionRecord):
            return NotImplemented
        return self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def with_process_name(self, process_name: str | None) -> "ConnectionRecord":
        return replace(self, process_name=process_name or self.command)

    def with_project(self, project: ProjectInfo | None) -> "ConnectionRecord":
        return replace(self, project=project)

    @property
    def port_display(self) -> str:
        proto = self.protocol.value.upper() if self.protocol != Protocol.UNKNOWN else "Unknown"
        return f"{self.port} ({proto})"

    def _process_style(self) -> tuple[str, str]:
        name = self.process_name.lower()
        for fragment, icon, color in PROCESS_STYLES:
            if fragment in name:
                return icon, color
        return "circle.fill", "gray"

    @property
    def process_icon(self) -> str:
        return self._process_style()[0]

    @property
    def process_color(self) -> str:
        return self._process_style()[1]

    @property
    def status_color(self) -> str:
        return STATUS_COLORS[self.status]

    def to_dict(self) -> dict:
        return {
            "port": self.port,
            "pid": self.pid,
            "process_name": self.process_name,
            "command": self.command,
            "user": self.user,
            "protocol": self.protocol.value,
            "status": self.status.value,
            "port_display": self.port_display,
            "process_icon": self.process_icon,
            "process_color": self.process_color,
            "status_color": self.status_color,
            "project": self.project.to_dict() if self.project else None,
        }
