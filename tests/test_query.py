"""Tests for search, filtering and pagination."""

import pytest

from apptracker.services.query import (
    filter_applications,
    filter_by_status,
    paginate,
    parse_page,
    parse_page_size,
    parse_tags,
    stat_count,
)


@pytest.fixture
def tagged(make_app):
    return [
        make_app("Gopher Inc", "Backend Engineer", tags=["Go", "web"]),
        make_app("Snake Co", "Data Scientist", "Heavy pandas work", tags=["python"]),
    ]


class TestTagFilter:
    def test_case_insensitive(self, tagged):
        assert [a.company for a in filter_applications(tagged, None, ["GO"])] == ["Gopher Inc"]

    def test_all_tags_required(self, tagged):
        assert [a.company for a in filter_applications(tagged, None, ["go", "web"])] == ["Gopher Inc"]

    def test_missing_tag_excludes(self, tagged):
        assert filter_applications(tagged, None, ["go", "ruby"]) == []

    def test_no_tags_keeps_everything(self, tagged):
        assert filter_applications(tagged, None, []) == tagged
        assert filter_applications(tagged) == tagged


class TestTextQuery:
    @pytest.mark.parametrize("query", ["snake", "SCIENTIST", "pandas"])
    def test_matches_any_field(self, tagged, query):
        assert [a.company for a in filter_applications(tagged, query)] == ["Snake Co"]

    def test_no_match(self, tagged):
        assert filter_applications(tagged, "cobol") == []

    def test_url_is_not_searched(self, make_app):
        apps = [make_app("Acme", "Engineer", url="https://jobs.example/rust")]
        assert filter_applications(apps, "rust") == []

    def test_combined_with_tags(self, tagged):
        assert filter_applications(tagged, "engineer", ["python"]) == []
        assert [a.company for a in filter_applications(tagged, "engineer", ["web"])] == ["Gopher Inc"]

    def test_order_preserved(self, make_app):
        apps = [make_app(f"Acme {i}") for i in range(5)]
        assert filter_applications(apps, "acme") == apps


def test_filter_by_status(make_app):
    apps = [make_app("A"), make_app("B", status="rejected"), make_app("C")]
    assert [a.company for a in filter_by_status(apps, "applied")] == ["A", "C"]
    assert filter_by_status(apps, "") == apps


class TestParsing:
    @pytest.mark.parametrize("raw,expected", [
        (None, 1), ("", 1), ("abc", 1), ("0", 1), ("-4", 1), ("3", 3), (7, 7),
    ])
    def test_parse_page(self, raw, expected):
        assert parse_page(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        (None, 10), ("", 10), ("x", 10), ("7", 10), ("100", 10),
        ("10", 10), ("25", 25), ("50", 50),
    ])
    def test_parse_page_size(self, raw, expected):
        assert parse_page_size(raw) == expected

    def test_parse_tags(self):
        assert parse_tags(" go, web ,,") == ["go", "web"]
        assert parse_tags("") == []
        assert parse_tags(None) == []


class TestPaginate:
    @pytest.fixture
    def apps(self, make_app):
        return [make_app(f"Company {i}") for i in range(25)]

    def test_first_page(self, apps):
        page = paginate(apps, 1, 10)
        assert len(page.items) == 10
        assert page.items[0].company == "Company 0"
        assert page.total_count == 25
        assert page.total_pages == 3
        assert page.has_next_page is True
        assert page.has_prev_page is False

    def test_last_page(self, apps):
        page = paginate(apps, 3, 10)
        assert [a.company for a in page.items] == [f"Company {i}" for i in range(20, 25)]
        assert page.has_next_page is False
        assert page.has_prev_page is True

    def test_out_of_range_page_is_empty(self, apps):
        page = paginate(apps, 4, 10)
        assert page.items == []
        assert page.total_count == 25

    def test_invalid_page_size_behaves_like_default(self, apps):
        assert paginate(apps, 1, parse_page_size("7")).items == paginate(apps, 1, 10).items

    def test_empty_collection(self):
        page = paginate([], 1, 10)
        assert page.items == []
        assert page.total_pages == 0
        assert page.has_next_page is False

    def test_meta_aliases(self, apps):
        meta = paginate(apps, 2, 25).meta().model_dump(by_alias=True)
        assert meta == {
            "page": 2,
            "pageSize": 25,
            "totalCount": 25,
            "totalPages": 1,
            "hasNextPage": False,
            "hasPrevPage": True,
        }


class TestStats:
    @pytest.fixture
    def apps(self, make_app):
        return [
            make_app("A"),
            make_app("B", status="in_progress"),
            make_app("C", status="in_progress"),
            make_app("D", status="accepted"),
            make_app("E", status="rejected"),
        ]

    @pytest.mark.parametrize("stat,expected", [
        ("total", 5), ("applied", 1), ("in-progress", 2), ("accepted", 1), ("rejected", 1),
    ])
    def test_stat_count(self, apps, stat, expected):
        assert stat_count(apps, stat) == expected

    def test_unknown_stat(self, apps):
        with pytest.raises(ValueError):
            stat_count(apps, "ghosted")
