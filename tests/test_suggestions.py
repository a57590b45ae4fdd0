import json

import pytest
import requests

from gallery_index.gallery_index.models import Suggestion
from gallery_index.gallery_index.suggestions import (
    TagSuggester,
    format_suggestion,
    split_query,
    tag_index_url,
)

from conftest import FakeResponse, FakeSession

TAG_DOMAIN = "tags.example.net"


@pytest.mark.parametrize("query, expected", [
    ("glasses", ("global", "glasses")),
    ("female:big_b", ("female", "big b")),
    ("series:re:zero", ("series", "re:zero")),
])
def test_split_query(query, expected):
    assert split_query(query) == expected


def test_tag_index_url_walks_the_trie():
    assert tag_index_url(TAG_DOMAIN, "female", "big b") == f"https://{TAG_DOMAIN}/female/b/i/g/_/b.json"
    assert tag_index_url(TAG_DOMAIN, "global", "a.b") == f"https://{TAG_DOMAIN}/global/a/dot/b.json"


class TestFormatting:
    def test_plain_tag_has_no_prefix(self):
        assert format_suggestion(["glasses", 1200, "tag"]) == Suggestion(tag="glasses", count=1200, ns="tag")

    def test_namespaced_row_gets_prefix(self):
        assert format_suggestion(["glasses", 900, "female"]).tag == "female:glasses"
        assert format_suggestion(["touhou project", 5, "series"]).tag == "series:touhou project"

    def test_missing_namespace_defaults_to_tag(self):
        assert format_suggestion(["x", 3]) == Suggestion(tag="x", count=3, ns="tag")

    @pytest.mark.parametrize("row", [[], None, "glasses", 7])
    def test_malformed_rows(self, row):
        assert format_suggestion(row) is None


class TestTagSuggester:
    def url(self, field, term):
        return tag_index_url(TAG_DOMAIN, field, term)

    def test_suggest(self):
        rows = [["glasses", 1200, "female"], ["glasses", 300, "male"], ["glass", 4, "tag"]]
        session = FakeSession({self.url("global", "gla"): FakeResponse(200, text=json.dumps(rows))})
        result = TagSuggester(TAG_DOMAIN, session=session).suggest("gla")
        assert [s.tag for s in result] == ["female:glasses", "male:glasses", "glass"]
        assert result[0].count == 1200

    def test_namespaced_query(self):
        session = FakeSession({self.url("female", "big b"): FakeResponse(200, text='[["big breasts", 80000, "female"]]')})
        result = TagSuggester(TAG_DOMAIN, session=session).suggest("female:big_b")
        assert result == [Suggestion(tag="female:big breasts", count=80000, ns="female")]

    @pytest.mark.parametrize("query", ["", "   ", "female:"])
    def test_empty_terms_skip_io(self, query):
        session = FakeSession()
        assert TagSuggester(TAG_DOMAIN, session=session).suggest(query) == []
        assert session.calls == []

    @pytest.mark.parametrize("outcome", [
        FakeResponse(404),
        FakeResponse(200, text="<html>"),
        FakeResponse(200, text='{"not": "a list"}'),
        requests.ConnectionError("down"),
    ])
    def test_failures_are_empty(self, outcome):
        session = FakeSession({self.url("global", "x"): outcome})
        assert TagSuggester(TAG_DOMAIN, session=session).suggest("x") == []
