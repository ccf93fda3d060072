"""Shared pytest fixtures for bundlecheck tests."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

import pytest

from bundlecheck.validation.problems import Severity, Status, ValidationProblem

# =============================================================================
# Report Sinks
# =============================================================================


class RecordingSink:
    """Report sink that remembers every record instead of rendering it."""

    def __init__(self) -> None:
        self.records: list[tuple[Status, str, list[ValidationProblem]]] = []

    def format_header(self, writer: TextIO, title: str) -> None:
        writer.write(f"[{title}]\n")

    def format_record(
        self,
        writer: TextIO,
        status: Status,
        source: str,
        problems: Sequence[ValidationProblem],
        level: Severity,
    ) -> None:
        self.records.append((status, source, list(problems)))

    def format_record_skip(
        self,
        writer: TextIO,
        source: str,
        problem: ValidationProblem | None,
        level: Severity,
    ) -> None:
        self.records.append((Status.SKIP, source, [problem] if problem is not None else []))

    def format_footer(self, writer: TextIO) -> None:
        writer.write("[custom footer]\n")

    def sources(self) -> list[str]:
        return [source for _, source, _ in self.records]


@pytest.fixture
def recording_sink() -> RecordingSink:
    """A fresh RecordingSink."""
    return RecordingSink()


# =============================================================================
# Bundles on Disk
# =============================================================================


@pytest.fixture
def valid_bundle(tmp_path: Path) -> Path:
    """Create a bundle whose root holds only allowed names.

    Layout:
        bundle_demo/
            bundle_demo.xml
            readme.txt
            data/collection_data.xml
            data/image_001.img
            document/collection_document.xml
    """
    root = tmp_path / "bundle_demo"
    root.mkdir()
    (root / "bundle_demo.xml").write_text("<Product_Bundle/>")
    (root / "readme.txt").write_text("About this bundle\n")

    data = root / "data"
    data.mkdir()
    (data / "collection_data.xml").write_text("<Product_Collection/>")
    (data / "image_001.img").write_bytes(b"\x00" * 16)

    document = root / "document"
    document.mkdir()
    (document / "collection_document.xml").write_text("<Product_Collection/>")
    return root


@pytest.fixture
def invalid_bundle(valid_bundle: Path) -> Path:
    """The valid bundle plus one unexpected file and one badly named directory."""
    (valid_bundle / "notes.doc").write_text("scratch notes")
    (valid_bundle / "images").mkdir()
    return valid_bundle
