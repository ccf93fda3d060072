"""Tests for the rule base class and the bundle contents naming rule."""

from __future__ import annotations

import re
from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from bundlecheck.crawler import Target, to_path
from bundlecheck.validation.definitions import (
    INVALID_COLLECTION_NAME,
    UNCAUGHT_EXCEPTION,
    UNEXPECTED_FILE_IN_BUNDLE_ROOT,
)
from bundlecheck.validation.problems import ValidationProblem
from bundlecheck.validation.rules import (
    ALLOWED_BUNDLE_NAME_PREFIXES,
    ALLOWED_DIRECTORY_NAME_PATTERNS,
    ALLOWED_FILE_NAME_PATTERNS,
    BundleContentsNamingRule,
    ValidationContext,
    ValidationRule,
    matches_any,
    validation_test,
)

ROOT = "file:///archive/b1/"
LABEL_PATTERN = re.compile(r"bundle([A-Za-z0-9_.-]*)?\.xml")


class FakeCrawler:
    """Crawler returning a fixed listing, or raising a given error."""

    def __init__(self, entries: dict[str, bool] | None = None, error: OSError | None = None):
        self.entries = entries or {}
        self.error = error
        self.crawled: list[str] = []

    def crawl(self, location: str | Path) -> list[Target]:
        self.crawled.append(str(location))
        if self.error is not None:
            raise self.error
        root = to_path(location)
        return [Target(path=root / name, is_dir=is_dir) for name, is_dir in self.entries.items()]


class ListListener:
    def __init__(self) -> None:
        self.problems: list[ValidationProblem] = []

    def add_problem(self, problem: ValidationProblem) -> None:
        self.problems.append(problem)


def run_naming_rule(
    entries: dict[str, bool],
    label_pattern: re.Pattern[str] | None = LABEL_PATTERN,
) -> list[ValidationProblem]:
    listener = ListListener()
    context = ValidationContext(
        crawler=FakeCrawler(entries),
        target=ROOT,
        bundle_label_pattern=label_pattern,
        listener=listener,
    )
    BundleContentsNamingRule().run(context)
    return listener.problems


class TestMatchesAny:
    """Tests for whole-name pattern matching."""

    @pytest.mark.unit
    def test_requires_full_match(self) -> None:
        patterns = [re.compile("readme.html")]
        assert matches_any("readme.html", patterns)
        assert not matches_any("readme.html.bak", patterns)
        assert not matches_any("old_readme.html", patterns)

    @pytest.mark.unit
    def test_empty_pattern_list(self) -> None:
        assert not matches_any("anything", [])

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "name", ["readme.txt", "readme_v2.txt", "readme-1.0.txt", "readme.html"]
    )
    def test_allowed_file_names(self, name: str) -> None:
        assert matches_any(name, ALLOWED_FILE_NAME_PATTERNS)

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["README.TXT", "readme.md", "readme txt.txt", "notes.txt"])
    def test_disallowed_file_names(self, name: str) -> None:
        """Matching is case-sensitive."""
        assert not matches_any(name, ALLOWED_FILE_NAME_PATTERNS)

    @pytest.mark.unit
    @given(
        prefix=st.sampled_from(ALLOWED_BUNDLE_NAME_PREFIXES),
        suffix=st.text(
            alphabet="abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-",
            max_size=20,
        ),
    )
    def test_prefix_plus_allowed_characters_is_a_collection_name(
        self, prefix: str, suffix: str
    ) -> None:
        assert matches_any(prefix + suffix, ALLOWED_DIRECTORY_NAME_PATTERNS)

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["images", "Data", "data.old", "my_data", "data clean"])
    def test_disallowed_directory_names(self, name: str) -> None:
        assert not matches_any(name, ALLOWED_DIRECTORY_NAME_PATTERNS)


class TestBundleContentsNamingRule:
    """Tests for BundleContentsNamingRule."""

    @pytest.mark.unit
    def test_only_applies_to_directories(self) -> None:
        rule = BundleContentsNamingRule()
        assert rule.is_applicable(ROOT)
        assert not rule.is_applicable("file:///archive/b1/bundle.xml")

    @pytest.mark.unit
    def test_clean_root_has_no_problems(self) -> None:
        problems = run_naming_rule(
            {
                "bundle_b1.xml": False,
                "readme.txt": False,
                "data": True,
                "data_clean-01": True,
                "document": True,
                "xml_schema": True,
            }
        )
        assert problems == []

    @pytest.mark.unit
    def test_uppercase_readme_is_unexpected(self) -> None:
        problems = run_naming_rule({"readme.txt": False, "README.TXT": False})
        assert len(problems) == 1
        assert problems[0].definition is UNEXPECTED_FILE_IN_BUNDLE_ROOT
        assert problems[0].source == "file:///archive/b1/README.TXT"

    @pytest.mark.unit
    def test_bad_directory_name(self) -> None:
        problems = run_naming_rule({"images": True})
        assert [p.definition for p in problems] == [INVALID_COLLECTION_NAME]
        assert problems[0].source == "file:///archive/b1/images/"

    @pytest.mark.unit
    def test_leaf_name_is_checked_not_the_path(self) -> None:
        """A subdirectory named ``sub`` fails even though its parent is ``data``."""
        problems = run_naming_rule({"sub": True})
        assert [p.definition for p in problems] == [INVALID_COLLECTION_NAME]

    @pytest.mark.unit
    def test_label_pattern_allows_label_file(self) -> None:
        assert run_naming_rule({"bundle_b1.xml": False}) == []

    @pytest.mark.unit
    def test_without_label_pattern_label_is_unexpected(self) -> None:
        problems = run_naming_rule({"bundle_b1.xml": False}, label_pattern=None)
        assert [p.definition for p in problems] == [UNEXPECTED_FILE_IN_BUNDLE_ROOT]

    @pytest.mark.unit
    def test_label_pattern_must_match_whole_name(self) -> None:
        problems = run_naming_rule({"bundle_b1.xml.bak": False})
        assert [p.definition for p in problems] == [UNEXPECTED_FILE_IN_BUNDLE_ROOT]

    @pytest.mark.unit
    def test_one_problem_per_offending_entry(self) -> None:
        problems = run_naming_rule({"a.doc": False, "b.doc": False, "images": True})
        assert len(problems) == 3

    @pytest.mark.unit
    def test_file_name_patterns_appends_label(self) -> None:
        patterns = BundleContentsNamingRule().file_name_patterns(LABEL_PATTERN)
        assert patterns[: len(ALLOWED_FILE_NAME_PATTERNS)] == ALLOWED_FILE_NAME_PATTERNS
        assert patterns[-1] is LABEL_PATTERN

    @pytest.mark.unit
    def test_crawl_failure_reports_single_problem_at_root(self) -> None:
        listener = ListListener()
        context = ValidationContext(
            crawler=FakeCrawler(error=PermissionError("permission denied")),
            target=ROOT,
            bundle_label_pattern=LABEL_PATTERN,
            listener=listener,
        )
        BundleContentsNamingRule().run(context)

        assert len(listener.problems) == 1
        problem = listener.problems[0]
        assert problem.definition is UNCAUGHT_EXCEPTION
        assert problem.source == ROOT
        assert "permission denied" in problem.text


class TestValidationRule:
    """Tests for the ValidationRule base class."""

    @pytest.mark.unit
    def test_runs_tests_in_definition_order_base_first(self) -> None:
        calls: list[str] = []

        class BaseRule(ValidationRule):
            name = "base"
            description = "base"

            @validation_test
            def check_first(self, context: ValidationContext) -> None:
                calls.append("first")

            def helper(self, context: ValidationContext) -> None:
                calls.append("helper")

        class DerivedRule(BaseRule):
            name = "derived"

            @validation_test
            def check_second(self, context: ValidationContext) -> None:
                calls.append("second")

            @validation_test
            def check_third(self, context: ValidationContext) -> None:
                calls.append("third")

        context = ValidationContext(FakeCrawler(), ROOT, None, ListListener())
        DerivedRule().run(context)
        assert calls == ["first", "second", "third"]

    @pytest.mark.unit
    def test_exception_becomes_problem(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failing test is reported and the remaining tests still run."""
        ran: list[str] = []

        class ExplodingRule(ValidationRule):
            name = "exploding"
            description = "raises"

            @validation_test
            def check_boom(self, context: ValidationContext) -> None:
                raise ValueError("boom")

            @validation_test
            def check_after(self, context: ValidationContext) -> None:
                ran.append("after")

        listener = ListListener()
        ExplodingRule().run(ValidationContext(FakeCrawler(), ROOT, None, listener))

        assert [p.definition for p in listener.problems] == [UNCAUGHT_EXCEPTION]
        assert listener.problems[0].text == "boom"
        assert listener.problems[0].source == ROOT
        assert ran == ["after"]
        assert "Rule exploding failed" in caplog.text

    @pytest.mark.unit
    def test_default_is_applicable(self) -> None:
        class AnyRule(ValidationRule):
            name = "any"
            description = "any"

        assert AnyRule().is_applicable("file:///x.xml")
