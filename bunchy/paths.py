from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Dirs:
    workspace: Path
    src: Path
    public: Path
    assets: Path
    components: Path
    scss: Path
    common: Path | None = None


def resolve_dirs(
    workspace: Path | str,
    *,
    common: Path | str | None = None,
    build_dir: Path | str = "",
) -> Dirs:
    """Resolve the directory layout for a workspace root."""
    root = Path(workspace).resolve()
    src = root / "src"

    if build_dir:
        public = Path(build_dir)
        if not public.is_absolute():
            public = root / public
    else:
        public = root / "public"

    return Dirs(
        workspace=root,
        src=src,
        public=public.resolve(),
        assets=src / "assets",
        components=src / "components",
        scss=src / "scss",
        common=Path(common).resolve() if common else None,
    )


def public_path(dirs: Dirs) -> str:
    """Output directory relative to the workspace, as sent to clients."""
    try:
        return dirs.public.relative_to(dirs.workspace).as_posix()
    except ValueError:
        return dirs.public.as_posix()
