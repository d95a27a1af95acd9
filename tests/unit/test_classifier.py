"""Tests for the image reference classifier."""

from __future__ import annotations

import pytest

from tagtrail.detection.classifier import ImageMatcher, compile_pattern, matches
from tagtrail.errors import ConfigError


class TestImageMatcher:
    def test_matches_host_pattern(self) -> None:
        matcher = ImageMatcher(r".*example\.com.*")
        assert matcher.matches("registry.example.com/app:1.2.0") is True

    def test_no_match_other_registry(self) -> None:
        matcher = ImageMatcher(r".*example\.com.*")
        assert matcher.matches("docker.io/library/nginx:1.25") is False

    def test_pattern_applies_to_full_reference(self) -> None:
        """The pattern may target the repository or tag, not only the host."""
        matcher = ImageMatcher(r"/payments-")
        assert matcher.matches("registry.example.com/payments-api:3.1") is True
        assert matcher.matches("registry.example.com/billing:3.1") is False

    def test_unanchored_search(self) -> None:
        """Like Go's regexp.MatchString, a match anywhere counts."""
        matcher = ImageMatcher(r"example\.com")
        assert matcher.matches("registry.example.com/app:1") is True

    def test_anchored_pattern_respected(self) -> None:
        matcher = ImageMatcher(r"^example\.com/")
        assert matcher.matches("registry.example.com/app:1") is False
        assert matcher.matches("example.com/app:1") is True

    def test_non_string_reference_does_not_match(self) -> None:
        matcher = ImageMatcher(r".*")
        assert matcher.matches(None) is False  # type: ignore[arg-type]

    def test_pattern_property(self) -> None:
        assert ImageMatcher(r"abc").pattern == "abc"


class TestCompilePattern:
    def test_empty_pattern_is_fatal(self) -> None:
        with pytest.raises(ConfigError, match="must not be empty"):
            compile_pattern("")

    def test_invalid_pattern_is_fatal(self) -> None:
        with pytest.raises(ConfigError, match="invalid image pattern"):
            compile_pattern("registry.(example")

    def test_matcher_rejects_invalid_pattern_at_construction(self) -> None:
        with pytest.raises(ConfigError):
            ImageMatcher("[unclosed")


class TestMatchesFunction:
    def test_match(self) -> None:
        assert matches("registry.example.com/app:1", r"example") is True

    def test_bad_pattern_matches_nothing(self) -> None:
        assert matches("registry.example.com/app:1", "(") is False

    def test_empty_pattern_matches_nothing(self) -> None:
        assert matches("registry.example.com/app:1", "") is False
