"""Mapping between public asset URLs and files in the public directory."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlsplit

from aco.compression.transcode import TARGET_EXTENSION
from aco.core.datetime_utils import epoch_millis, to_base36


@dataclass(frozen=True)
class TargetPaths:
    """Where a compressed artifact is written and how it is addressed."""

    content_hash: str
    path: Path
    url: str


class PublicStorage:
    """Local public directory holding uploaded files.

    A URL such as ``/uploads/abc.wav`` maps to ``<public_dir>/uploads/abc.wav``.
    """

    def __init__(self, public_dir: Path, uploads_subdir: str = "uploads") -> None:
        self.public_dir = Path(public_dir)
        self.uploads_subdir = uploads_subdir.strip("/")

    @property
    def uploads_dir(self) -> Path:
        return self.public_dir / self.uploads_subdir

    def url_to_path(self, url: str | None) -> Path | None:
        """Resolve a public URL to a file path.

        Returns None for absolute URLs (scheme or host present), empty URLs
        and anything that would resolve outside the public directory.
        """
        if not url:
            return None
        parts = urlsplit(url)
        if parts.scheme or parts.netloc:
            return None
        relative = unquote(parts.path).lstrip("/")
        if not relative or "\x00" in relative:
            return None

        root = self.public_dir.resolve()
        try:
            candidate = (root / relative).resolve()
        except (OSError, ValueError):
            return None
        if not candidate.is_relative_to(root) or candidate == root:
            return None
        return candidate

    def build_target(
        self,
        content_hash: str,
        now_ms: int | None = None,
        avoid: Path | None = None,
    ) -> TargetPaths:
        """Reserve a fresh output file ``{hash}_m{base36 millis}.mp3``.

        The file is created empty with exclusive mode, so two runs (in any
        process) never receive the same name. The timestamp is bumped until
        creation succeeds and the name differs from ``avoid`` (the source
        file). The encoder overwrites the reserved file.

        Raises:
            OSError: If the uploads directory cannot be written.
        """
        millis = epoch_millis() if now_ms is None else now_ms
        avoid_resolved = avoid.resolve() if avoid is not None else None
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        while True:
            new_hash = f"{content_hash}_m{to_base36(millis)}"
            file_name = f"{new_hash}{TARGET_EXTENSION}"
            path = self.uploads_dir / file_name
            millis += 1
            if path.resolve() == avoid_resolved:
                continue
            try:
                path.open("x").close()
            except FileExistsError:
                continue
            return TargetPaths(
                content_hash=new_hash,
                path=path,
                url=f"/{self.uploads_subdir}/{file_name}",
            )
