"""Guess which project a process is serving from its working directory.

Layers, first confident match wins:

1. package.json manifest, refined by its declared dependencies
2. marker files (requirements.txt, Gemfile, go.mod, Cargo.toml, ...)
3. dominant source-file extension in the directory
4. port-range + process-name prior (weak, only used when nothing on disk matched)

Nothing here raises: unreadable files fall through to the next layer and an
unreadable directory means there is no project context at all.
"""

import json
import logging
from collections import Counter
from pathlib import Path

from devports.config import ClassifierConfig, config
from devports.models import ProjectInfo, ProjectType

log = logging.getLogger("devports.classifier")

MANIFEST = "package.json"

# package.json dependency -> type, in priority order
MANIFEST_DEPENDENCIES = [
    ("next", ProjectType.NEXTJS),
    ("react", ProjectType.REACT),
    ("vue", ProjectType.VUE),
    ("@angular/core", ProjectType.ANGULAR),
]

# (marker files, base type, refining file, refined type), in priority order
MARKERS: list[tuple[tuple[str, ...], ProjectType, str | None, ProjectType | None]] = [
    (("requirements.txt", "pyproject.toml", "Pipfile", "setup.py"), ProjectType.PYTHON, "manage.py", ProjectType.DJANGO),
    (("Gemfile",), ProjectType.RUBY, "config/routes.rb", ProjectType.RAILS),
    (("go.mod",), ProjectType.GO, None, None),
    (("Cargo.toml",), ProjectType.RUST, None, None),
    (("composer.json",), ProjectType.PHP, "artisan", ProjectType.LARAVEL),
    (("pubspec.yaml",), ProjectType.FLUTTER, None, None),
    (("pom.xml",), ProjectType.JAVA, None, None),
    (("build.gradle", "build.gradle.kts"), ProjectType.KOTLIN, None, None),
    (("*.csproj", "*.sln"), ProjectType.DOTNET, None, None),
    (("Package.swift",), ProjectType.SWIFT, None, None),
]

EXTENSION_TYPES = {
    "swift": ProjectType.SWIFT,
    "kt": ProjectType.KOTLIN,
    "java": ProjectType.JAVA,
    "py": ProjectType.PYTHON,
    "rb": ProjectType.RUBY,
    "go": ProjectType.GO,
    "rs": ProjectType.RUST,
    "php": ProjectType.PHP,
    "cs": ProjectType.DOTNET,
    "ts": ProjectType.NODE,
    "tsx": ProjectType.REACT,
    "jsx": ProjectType.REACT,
    "vue": ProjectType.VUE,
}


def _display_name(directory: Path, project_type: ProjectType) -> str:
    return directory.name or f"{project_type.display_name} Project"


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError as e:
        log.debug(f"[classifier] cannot check {path}: {e}")
        return False


def _has_marker(entries: set[str], marker: str) -> bool:
    if marker.startswith("*"):
        return any(e.endswith(marker[1:]) for e in entries)
    return marker in entries


def port_hint(port: int, process_name: str, cfg: ClassifierConfig | None = None) -> ProjectType | None:
    """Tentative type from the configured port ranges."""
    cfg = cfg or config.classifier
    for hint in cfg.port_hints:
        if hint.matches(port, process_name or ""):
            return ProjectType(hint.project_type)
    return None


def from_manifest(directory: Path) -> tuple[ProjectType, str]:
    """Classify a directory known to contain package.json."""
    try:
        data = json.loads((directory / MANIFEST).read_text(errors="replace"))
    except (OSError, ValueError) as e:
        log.debug(f"[classifier] unreadable manifest in {directory}: {e}")
        return ProjectType.NODE, _display_name(directory, ProjectType.NODE)

    if not isinstance(data, dict):
        return ProjectType.NODE, _display_name(directory, ProjectType.NODE)

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        name = None

    project_type = ProjectType.NODE
    dependencies = data.get("dependencies")
    if isinstance(dependencies, dict):
        for dep, dep_type in MANIFEST_DEPENDENCIES:
            if dep in dependencies:
                project_type = dep_type
                break

    return project_type, name or _display_name(directory, project_type)


def from_markers(directory: Path, entries: set[str]) -> ProjectType | None:
    for markers, base_type, refiner, refined_type in MARKERS:
        if not any(_has_marker(entries, m) for m in markers):
            continue
        if refiner and _exists(directory / refiner):
            return refined_type
        return base_type
    return None


def from_extensions(directory: Path, min_files: int) -> ProjectType | None:
    """Type implied by the most common file extension, if it is common enough."""
    counts: Counter[str] = Counter()
    try:
        for entry in directory.iterdir():
            if entry.is_file() and entry.suffix:
                counts[entry.suffix[1:].lower()] += 1
    except OSError:
        return None
    if not counts:
        return None

    ext, count = min(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    if count < min_files:
        return None
    return EXTENSION_TYPES.get(ext)


def classify(
    port: int,
    process_name: str,
    working_directory: str | None,
    cfg: ClassifierConfig | None = None,
) -> ProjectInfo | None:
    """Project context for a process, or None when nothing matched."""
    cfg = cfg or config.classifier
    if not working_directory:
        return None

    directory = Path(working_directory)
    try:
        entries = {entry.name for entry in directory.iterdir()}
    except OSError as e:
        log.debug(f"[classifier] cannot list {directory}: {e}")
        return None

    prior = port_hint(port, process_name, cfg)

    if MANIFEST in entries:
        project_type, name = from_manifest(directory)
        return ProjectInfo(name=name, type=project_type, path=working_directory)

    project_type = from_markers(directory, entries)
    if project_type is None:
        project_type = from_extensions(directory, cfg.min_extension_files)
    if project_type is None:
        project_type = prior
    if project_type is None:
        return None

    return ProjectInfo(name=_display_name(directory, project_type), type=project_type, path=working_directory)
