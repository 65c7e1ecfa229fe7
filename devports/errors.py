"""Error taxonomy for scans and lifecycle actions."""


class DevPortsError(Exception):
    pass


class CommandError(DevPortsError):
    """An external tool failed to launch, exited non-zero, or timed out."""

    def __init__(self, executable: str, args: list[str], message: str, returncode: int | None = None):
        self.executable = executable
        self.args_list = list(args)
        self.returncode = returncode
        self.message = message
        super().__init__(f"{executable} {' '.join(args)}: {message}".strip())


class MissingProjectContext(DevPortsError):
    def __init__(self, port: int, pid: int):
        self.port = port
        self.pid = pid
        super().__init__(f"No project info available for port {port} (pid {pid})")


class UnsupportedProjectType(DevPortsError):
    def __init__(self, project_type: str, reason: str = "no known start command"):
        self.project_type = project_type
        super().__init__(f"Unsupported project type for restart: {project_type} ({reason})")
