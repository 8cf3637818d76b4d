"""
tests.test_resolver
~~~~~~~~~~~~~~~~~~~
Unit tests for path -> list resource resolution and list type attributes.
"""
from __future__ import annotations

import pytest

from lists.resolver import resolve
from lists.types import ListType, RowKind, domain_type_code


# ===========================================================================
# TestResolve
# ===========================================================================

class TestResolve:
    """Prefix matching, precedence and argument extraction."""

    @pytest.mark.parametrize(
        ("path", "list_type", "modifiable"),
        [
            ("/api/groups", ListType.GROUPS, True),
            ("/api/adlists", ListType.ADLISTS, True),
            ("/api/clients", ListType.CLIENTS, True),
            ("/api/domains/allow/exact", ListType.ALLOW_EXACT, True),
            ("/api/domains/allow/regex", ListType.ALLOW_REGEX, True),
            ("/api/domains/allow", ListType.ALLOW_ALL, False),
            ("/api/domains/deny/exact", ListType.DENY_EXACT, True),
            ("/api/domains/deny/regex", ListType.DENY_REGEX, True),
            ("/api/domains/deny", ListType.DENY_ALL, False),
            ("/api/domains/exact", ListType.ALL_EXACT, False),
            ("/api/domains/regex", ListType.ALL_REGEX, False),
            ("/api/domains", ListType.ALL_ALL, False),
        ],
    )
    def test_collection_paths(self, path, list_type, modifiable):
        """Each known prefix resolves to its list type with no argument."""
        resource = resolve(path)
        assert resource is not None
        assert resource.list_type is list_type
        assert resource.modifiable is modifiable
        assert resource.argument is None

    def test_allow_exact_beats_parents(self):
        """The most specific prefix wins over /allow and /domains."""
        resource = resolve("/api/domains/allow/exact/example.com")
        assert resource.list_type is ListType.ALLOW_EXACT
        assert resource.argument == "example.com"

    def test_bare_exact_is_read_only_aggregate(self):
        """/api/domains/exact has no allow/deny qualifier and is read-only."""
        resource = resolve("/api/domains/exact")
        assert resource.list_type is ListType.ALL_EXACT
        assert resource.modifiable is False

    def test_argument_under_aggregate(self):
        """An unknown segment under /allow is an argument of ALLOW_ALL."""
        resource = resolve("/api/domains/allow/example.com")
        assert resource.list_type is ListType.ALLOW_ALL
        assert resource.argument == "example.com"

    def test_argument_is_url_decoded_once(self):
        """Percent-encoding is removed once, including encoded slashes."""
        resource = resolve("/api/domains/deny/regex/%5E.%2A%5C.ads%2F%2525")
        assert resource.list_type is ListType.DENY_REGEX
        assert resource.argument == "^.*\\.ads/%25"

    def test_trailing_slash_is_collection(self):
        resource = resolve("/api/groups/")
        assert resource.list_type is ListType.GROUPS
        assert resource.argument is None

    def test_prefix_needs_segment_boundary(self):
        """/api/groupsX is not /api/groups."""
        assert resolve("/api/groupsX") is None
        resource = resolve("/api/domains/allowance.com")
        assert resource.list_type is ListType.ALL_ALL
        assert resource.argument == "allowance.com"

    @pytest.mark.parametrize("path", ["/api", "/api/", "/api/unknown", "/health", ""])
    def test_unknown_paths(self, path):
        assert resolve(path) is None


# ===========================================================================
# TestListType
# ===========================================================================

class TestListType:
    """Per-type attributes are derived from the tag alone."""

    def test_collection_keys(self):
        assert ListType.GROUPS.collection_key == "groups"
        assert ListType.ADLISTS.collection_key == "adlists"
        assert ListType.CLIENTS.collection_key == "clients"
        assert ListType.DENY_REGEX.collection_key == "domains"
        assert ListType.ALL_ALL.collection_key == "domains"

    def test_kinds(self):
        assert ListType.GROUPS.kind is RowKind.GROUP
        assert ListType.ALLOW_ALL.kind is RowKind.DOMAIN

    def test_aggregate_codes_are_union_of_leaves(self):
        assert set(ListType.ALLOW_ALL.domain_codes) == {0, 2}
        assert set(ListType.DENY_ALL.domain_codes) == {1, 3}
        assert set(ListType.ALL_EXACT.domain_codes) == {0, 1}
        assert set(ListType.ALL_REGEX.domain_codes) == {2, 3}
        assert set(ListType.ALL_ALL.domain_codes) == {0, 1, 2, 3}
        assert ListType.GROUPS.domain_codes == ()

    @pytest.mark.parametrize(
        ("tag", "code"),
        [
            ("allow-exact", 0),
            ("deny/exact", 1),
            ("ALLOW-REGEX", 2),
            ("deny-regex", 3),
            ("allow", None),
            ("", None),
        ],
    )
    def test_domain_type_code(self, tag, code):
        assert domain_type_code(tag) == code
