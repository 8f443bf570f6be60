"""Tests for session_csrf policy module."""

import pytest

from session_csrf.policy import DEFAULT_IGNORED_METHODS, is_path_ignored, requires_check


class TestRequiresCheck:
    """Test suite for requires_check."""

    @pytest.mark.parametrize("method", ["GET", "HEAD", "OPTIONS"])
    def test_safe_methods_exempt(self, method):
        """Test default safe methods are not checked."""
        assert requires_check(method, "/anything") is False

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    def test_unsafe_methods_checked(self, method):
        """Test state-changing methods are checked."""
        assert requires_check(method, "/anything") is True

    def test_method_case_insensitive(self):
        """Test lower-case method names are normalized."""
        assert requires_check("get", "/") is False
        assert requires_check("post", "/") is True

    def test_path_substring_exempts_any_method(self):
        """Test ignored path substrings exempt unsafe methods."""
        assert requires_check("POST", "/api/hooks/github", ignored_paths=["/hooks/"]) is False
        assert requires_check("DELETE", "/api/hooks/github", ignored_paths=["/hooks/"]) is False

    def test_path_substring_is_not_prefix_match(self):
        """Test containment anywhere in the path is enough."""
        assert requires_check("POST", "/v1/public/upload", ignored_paths=["public"]) is False

    def test_non_matching_path_checked(self):
        """Test unrelated paths are still checked."""
        assert requires_check("POST", "/account", ignored_paths=["/hooks/"]) is True

    def test_custom_ignored_methods(self):
        """Test overriding the ignored method set."""
        assert requires_check("GET", "/", ignored_methods={"HEAD"}) is True
        assert requires_check("HEAD", "/", ignored_methods={"HEAD"}) is False

    def test_empty_ignored_methods(self):
        """Test every method is checked with no ignored methods."""
        assert requires_check("GET", "/", ignored_methods=frozenset()) is True

    def test_default_ignored_methods(self):
        """Test default ignored method set."""
        assert frozenset({"GET", "HEAD", "OPTIONS"}) == DEFAULT_IGNORED_METHODS


class TestIsPathIgnored:
    """Test suite for is_path_ignored."""

    def test_no_ignored_paths(self):
        """Test nothing is ignored by default."""
        assert is_path_ignored("/hooks/github", []) is False

    def test_any_match_wins(self):
        """Test order of ignored substrings does not matter."""
        assert is_path_ignored("/hooks/github", ["/nope", "/hooks"]) is True
        assert is_path_ignored("/hooks/github", ["/hooks", "/nope"]) is True

    def test_empty_substring_ignored(self):
        """Test an empty entry does not exempt every path."""
        assert is_path_ignored("/account", [""]) is False
