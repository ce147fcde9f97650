"""Path resolution utilities for flexible file path configuration."""

from pathlib import Path


def resolve_csv_path(csv_path_setting: str, project_root_fallback: Path | None = None) -> Path:
    """
    Resolve a configured CSV path.

    Resolution logic:
    1. Absolute path → use directly (e.g., Docker mounts: /app/config/model_catalog.csv)
    2. Relative path (contains / or \\) → resolve from cwd (e.g., ./config/model_catalog.csv)
    3. Filename only → resolve from project_root_fallback, or the nearest
       directory above this file holding a pyproject.toml

    Args:
        csv_path_setting: Path string from config/environment variable
        project_root_fallback: Project root directory. If None, auto-detects by
            navigating up from this file's location.

    Returns:
        Resolved Path object

    Examples:
        >>> resolve_csv_path("/app/config/model_catalog.csv")
        Path("/app/config/model_catalog.csv")

        >>> resolve_csv_path("./config/model_catalog.csv")
        Path("/current/working/dir/config/model_catalog.csv")

        >>> resolve_csv_path("model_catalog.csv")
        Path("/project/root/model_catalog.csv")
    """
    input_path = Path(csv_path_setting)

    if input_path.is_absolute():
        return input_path

    if "/" in str(input_path) or "\\" in str(input_path):
        return Path.cwd() / input_path

    if project_root_fallback is None:
        project_root_fallback = _find_project_root(Path(__file__).resolve())

    return project_root_fallback / input_path


def _find_project_root(start: Path) -> Path:
    current = start
    for _ in range(10):  # Max 10 levels up
        if (current / "pyproject.toml").exists():
            return current
        parent = current.parent
        if parent == current:  # Reached filesystem root
            break
        current = parent
    return Path.cwd()
