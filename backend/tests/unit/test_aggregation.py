import pytest

from docsite.schemas.github import ApiModule, LatestUpdate
from docsite.services import aggregation


def make_commit(date, message="Fix route matching", url="https://github.com/hapijs/hapi/commit/abc"):
    return {"commit": {"message": message, "committer": {"date": date}}, "html_url": url}


def make_issue(updated_at, title="Crash on empty payload", url="https://github.com/hapijs/hapi/issues/1"):
    return {"title": title, "updated_at": updated_at, "html_url": url}


class TestLatestUpdate:
    """Recency merge of the newest commit and the newest issue."""

    def test_commit_later_than_issue_wins(self):
        result = aggregation.latest_update(
            [make_commit("2024-03-02T10:00:00Z")],
            [make_issue("2024-03-01T10:00:00Z")],
        )
        assert result == LatestUpdate(
            title="Fix route matching",
            updated="2024-03-02T10:00:00Z",
            url="https://github.com/hapijs/hapi/commit/abc",
        )

    def test_equal_instants_go_to_issue(self):
        result = aggregation.latest_update(
            [make_commit("2024-03-01T10:00:00Z")],
            [make_issue("2024-03-01T10:00:00Z")],
        )
        assert result.title == "Crash on empty payload"
        assert result.url == "https://github.com/hapijs/hapi/issues/1"

    def test_issue_later_than_commit_wins(self):
        result = aggregation.latest_update(
            [make_commit("2024-03-01T10:00:00Z")],
            [make_issue("2024-03-01T10:00:01Z")],
        )
        assert result.updated == "2024-03-01T10:00:01Z"

    def test_commit_without_issue(self):
        result = aggregation.latest_update([make_commit("2024-03-01T10:00:00Z")], [])
        assert result.title == "Fix route matching"

    def test_issue_without_commit(self):
        result = aggregation.latest_update([], [make_issue("2024-03-01T10:00:00Z")])
        assert result.title == "Crash on empty payload"

    def test_nothing_gives_empty_result(self):
        result = aggregation.latest_update([], [])
        assert result.is_empty
        assert result.model_dump(exclude_none=True) == {}

    def test_none_lists_are_treated_as_empty(self):
        assert aggregation.latest_update(None, None).is_empty

    def test_only_first_elements_are_compared(self):
        """Lists arrive newest first; later entries are never inspected."""
        result = aggregation.latest_update(
            [make_commit("2024-01-01T00:00:00Z"), make_commit("2030-01-01T00:00:00Z", message="future")],
            [make_issue("2024-02-01T00:00:00Z")],
        )
        assert result.title == "Crash on empty payload"

    def test_comparison_uses_instants_not_strings(self):
        # 09:30 at -02:00 is 11:30 UTC, later than the issue at 11:00 UTC
        result = aggregation.latest_update(
            [make_commit("2024-03-01T09:30:00-02:00")],
            [make_issue("2024-03-01T11:00:00Z")],
        )
        assert result.title == "Fix route matching"


def test_parse_timestamp_treats_naive_as_utc():
    assert aggregation.parse_timestamp("2024-03-01T10:00:00") == aggregation.parse_timestamp("2024-03-01T10:00:00Z")


def test_active_repo_names_drops_archived():
    repos = [
        {"name": "a", "archived": False, "stargazers_count": 3},
        {"name": "b", "archived": True},
        {"name": "hapi", "archived": False},
    ]
    assert aggregation.active_repo_names(repos) == ["a", "hapi"]


def test_active_repo_names_handles_missing_list():
    assert aggregation.active_repo_names(None) == []


def test_collect_api_modules_filters_and_sorts():
    modules = aggregation.collect_api_modules(
        ["zeta", "hapi", "alpha", "broken", "mid"],
        ["doc-z", "doc-h", "doc-a", None, "doc-m"],
        core_repo="hapi",
    )
    assert modules == [
        ApiModule(name="alpha", html="doc-a"),
        ApiModule(name="mid", html="doc-m"),
        ApiModule(name="zeta", html="doc-z"),
    ]


def test_collect_api_modules_sorts_by_code_point():
    modules = aggregation.collect_api_modules(["beta", "Zed", "alpha"], ["b", "z", "a"], core_repo="hapi")
    assert [m.name for m in modules] == ["Zed", "alpha", "beta"]


@pytest.mark.parametrize(
    "version, expected",
    [
        ("7.9.0", "docs/Reference.md"),
        ("7.10.0", "docs/Reference.md"),
        ("8.0.0-1", "docs/Reference.md"),
        ("8.0.0-rc.1", "docs/Reference.md"),
        ("8.0.0", "API.md"),
        ("8.0.0+build.5", "API.md"),
        ("8.0.1-0", "API.md"),
        ("10.0.0", "API.md"),
        ("21.3.2", "API.md"),
    ],
)
def test_reference_path_boundary(version, expected):
    assert aggregation.reference_path(version) == expected


@pytest.mark.parametrize("version", ["latest", "8", "8.0", "8.0.0.0", "8.0.0.post1", "1!8.0.0", "v8.0.0"])
def test_reference_path_rejects_non_semver(version):
    with pytest.raises(ValueError):
        aggregation.reference_path(version)


def test_issue_and_pull_request_predicates():
    assert aggregation.is_plain_issue({"title": "bug"})
    assert aggregation.is_plain_issue({"title": "bug", "pull_request": None})
    assert not aggregation.is_plain_issue({"title": "fix", "pull_request": {"url": "x"}})
    assert aggregation.is_merged({"merged_at": "2024-01-01T00:00:00Z"})
    assert not aggregation.is_merged({"merged_at": None})
    assert not aggregation.is_merged({})
