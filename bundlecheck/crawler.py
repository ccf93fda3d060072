"""Discovery of the files and directories that make up a bundle.

Locations are passed around as ``file://`` URI strings so problems can be
reported against them without caring whether the target still exists.
Directory URIs end with ``/``.

Example:
    >>> crawler = DirectoryCrawler()
    >>> for target in crawler.crawl(Path("/archive/my_bundle")):
    ...     print(target.is_dir, target.url)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from urllib.parse import unquote_to_bytes, urlparse
from urllib.request import url2pathname

logger = logging.getLogger(__name__)

FILE_SCHEME = "file"


def _decode_uri_path(uri_path: str) -> str:
    """Undo the percent-encoding of ``Path.as_uri`` byte for byte.

    Names that are not valid UTF-8 come back through ``os.fsdecode`` the
    same way ``os.listdir`` returns them.
    """
    if os.name == "nt":
        return url2pathname(uri_path)
    return os.fsdecode(unquote_to_bytes(uri_path))


def to_location(path: Path, *, is_dir: bool | None = None) -> str:
    """Convert a filesystem path to a location URI.

    Args:
        path: Path to convert (made absolute first).
        is_dir: Force the trailing-slash decision; checked on disk when None.

    Returns:
        ``file://`` URI, ending in ``/`` for directories.
    """
    uri = path.absolute().as_uri()
    if is_dir is None:
        is_dir = path.is_dir()
    if is_dir and not uri.endswith("/"):
        uri += "/"
    return uri


def to_path(location: str | Path) -> Path:
    """Convert a location (``file://`` URI or plain path) to a Path."""
    if isinstance(location, Path):
        return location
    parsed = urlparse(location)
    if parsed.scheme == FILE_SCHEME:
        return Path(_decode_uri_path(parsed.path))
    return Path(location)


def remove_last_slash(location: str) -> str:
    """Strip a single trailing ``/`` from a location, if present."""
    if len(location) > 1 and location.endswith("/"):
        return location[:-1]
    return location


def location_name(location: str | Path) -> str:
    """Return the leaf name of a location, ignoring a trailing separator.

    Example:
        >>> location_name("file:///archive/bundle/data_raw/")
        'data_raw'
    """
    if isinstance(location, Path):
        return location.name
    stripped = remove_last_slash(location)
    parsed = urlparse(stripped)
    if parsed.scheme == FILE_SCHEME:
        return Path(_decode_uri_path(parsed.path)).name
    return Path(stripped).name


def is_directory_location(location: str | Path) -> bool:
    """True if the location names a directory.

    A trailing ``/`` marks a directory even when nothing exists on disk.
    """
    if isinstance(location, str) and location.endswith("/"):
        return True
    return to_path(location).is_dir()


@dataclass(frozen=True)
class Target:
    """A file or directory discovered inside a bundle.

    Attributes:
        path: Filesystem path of the target.
        is_dir: Whether the target is a directory.
    """

    path: Path
    is_dir: bool

    @property
    def url(self) -> str:
        """Location URI of this target."""
        return to_location(self.path, is_dir=self.is_dir)

    @property
    def name(self) -> str:
        return self.path.name


class Crawler(Protocol):
    """Lists the immediate contents of a directory location."""

    def crawl(self, location: str | Path) -> list[Target]:
        """Return the files and immediate subdirectories of ``location``.

        Raises:
            OSError: If the location cannot be listed.
        """
        ...


class DirectoryCrawler:
    """Crawler backed by the local filesystem.

    Entries are returned sorted by name. Hidden entries (leading ``.``) are
    skipped unless ``include_hidden`` is set. Names in ``exclude`` are
    always skipped, hidden or not.
    """

    def __init__(
        self, *, include_hidden: bool = False, exclude: Iterable[str] = ()
    ) -> None:
        self.include_hidden = include_hidden
        self.exclude = frozenset(exclude)

    def crawl(self, location: str | Path) -> list[Target]:
        path = to_path(location)
        logger.debug("Crawling %s", path)
        targets: list[Target] = []
        for entry in sorted(path.iterdir(), key=lambda p: p.name):
            if entry.name in self.exclude:
                logger.debug("Excluding %s", entry)
                continue
            if not self.include_hidden and entry.name.startswith("."):
                continue
            targets.append(Target(path=entry, is_dir=entry.is_dir()))
        return targets

