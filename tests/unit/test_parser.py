"""Unit tests for the search results page extractor."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from bookscout.errors import ErrorCode, MalformedDocument
from bookscout.models.book import PLACEHOLDER_DESCRIPTION, PLACEHOLDER_POSTER_URL, Pagination
from bookscout.parser import (
    parse_format_label,
    parse_search_page,
    parse_size_label,
    strip_comment_delimiters,
)

BASE_URL = "https://annas-archive.org"


class TestFullPage:
    """The canonical three-book fixture on page 2."""

    def test_extracts_three_books(self, search_page_html: str) -> None:
        parsed = parse_search_page(search_page_html, BASE_URL)
        assert [b.title for b in parsed.books] == ["Dune", "Dune Messiah", "Children of Dune"]
        assert parsed.skipped == 0

    def test_first_book_fields(self, search_page_html: str) -> None:
        book = parse_search_page(search_page_html, BASE_URL).books[0]
        assert book.identifier == "a1b2c3"
        assert book.author == "Frank Herbert"
        assert book.poster_url == "https://covers.example.org/a1b2c3.jpg"
        assert book.size_label == "1.5 MB"
        assert book.format_label == "EPUB"
        assert book.description == "Desert planet epic."
        assert book.download_url == "https://annas-archive.org/md5/a1b2c3"

    def test_size_unit_uppercased(self, search_page_html: str) -> None:
        book = parse_search_page(search_page_html, BASE_URL).books[1]
        assert book.size_label == "12.3 MB"
        assert book.format_label == "PDF"

    def test_defaults_for_missing_fields(self, search_page_html: str) -> None:
        book = parse_search_page(search_page_html, BASE_URL).books[2]
        assert book.size_label == "N/A"
        assert book.format_label == "MOBI"
        assert book.poster_url == PLACEHOLDER_POSTER_URL
        assert book.description == PLACEHOLDER_DESCRIPTION

    def test_pagination(self, search_page_html: str) -> None:
        pagination = parse_search_page(search_page_html, BASE_URL).pagination
        assert pagination == Pagination(
            current_page=2,
            total_pages=5,
            page_list=(1, 2, 3, 5),
            has_next=True,
            has_prev=True,
        )

    def test_navigation_links_are_not_cards(self, search_page_html: str) -> None:
        parsed = parse_search_page(search_page_html, BASE_URL)
        assert all("/md5/" in book.download_url for book in parsed.books)


class TestRobustness:
    def test_card_missing_author_is_dropped(
        self, build_card: Callable[..., str], build_page: Callable[..., str]
    ) -> None:
        html = build_page([
            build_card("good1", "Dune", "Frank Herbert"),
            build_card("bad01", "Anonymous Pamphlet", None),
        ])
        parsed = parse_search_page(html, BASE_URL)
        assert [b.identifier for b in parsed.books] == ["good1"]
        assert parsed.skipped == 1

    def test_card_with_blank_title_is_dropped(
        self, build_card: Callable[..., str], build_page: Callable[..., str]
    ) -> None:
        html = build_page([build_card("x", "   ", "Someone"), build_card("y", "Real", "Author")])
        parsed = parse_search_page(html, BASE_URL)
        assert [b.title for b in parsed.books] == ["Real"]
        assert parsed.skipped == 1

    def test_comment_wrapped_cards_are_extracted(
        self, build_card: Callable[..., str], build_page: Callable[..., str]
    ) -> None:
        html = build_page(
            [build_card("c1", "Hidden One", "A. Writer"), build_card("c2", "Hidden Two", "B. Writer")],
            comment_wrap=True,
        )
        parsed = parse_search_page(html, BASE_URL)
        assert [b.identifier for b in parsed.books] == ["c1", "c2"]

    def test_relative_poster_resolved(
        self, build_card: Callable[..., str], build_page: Callable[..., str]
    ) -> None:
        html = build_page([build_card("p1", "T", "A", poster="/covers/{id}.png")])
        book = parse_search_page(html, BASE_URL).books[0]
        assert book.poster_url == "https://annas-archive.org/covers/p1.png"

    def test_non_http_poster_replaced(
        self, build_card: Callable[..., str], build_page: Callable[..., str]
    ) -> None:
        html = build_page([build_card("p2", "T", "A", poster="data:image/gif;base64,R0lGOD")])
        book = parse_search_page(html, BASE_URL).books[0]
        assert book.poster_url == PLACEHOLDER_POSTER_URL

    def test_exact_class_names_not_required(self) -> None:
        html = (
            "<html><body>"
            '<a href="/md5/zz9"><img src="/x.jpg">'
            '<span class="text-xs">.djvu, 700KB</span>'
            "<h2>Signature Match</h2>"
            '<p class="truncate">Some Author</p>'
            "<i>Short blurb</i>"
            "</a></body></html>"
        )
        book = parse_search_page(html, BASE_URL).books[0]
        assert book.title == "Signature Match"
        assert book.author == "Some Author"
        assert book.size_label == "700 KB"
        assert book.format_label == "DJVU"
        assert book.description == "Short blurb"

    def test_no_cards_yields_empty_list(self) -> None:
        parsed = parse_search_page("<html><body><p>No files found.</p></body></html>", BASE_URL)
        assert parsed.books == []
        assert parsed.pagination == Pagination.single()

    def test_empty_body_is_zero_results(self) -> None:
        html = "<!DOCTYPE html><html><head><title>x</title></head><body></body></html>"
        parsed = parse_search_page(html, BASE_URL)
        assert parsed.books == []
        assert parsed.skipped == 0
        assert parsed.pagination == Pagination.single()

    def test_duplicate_identifier_kept_once(
        self, build_card: Callable[..., str], build_page: Callable[..., str]
    ) -> None:
        html = build_page([
            build_card("same1", "Dune", "Frank Herbert"),
            build_card("same1", "Dune (reissue)", "Frank Herbert"),
            build_card("other", "Dune Messiah", "Frank Herbert"),
        ])
        parsed = parse_search_page(html, BASE_URL)
        assert [b.identifier for b in parsed.books] == ["same1", "other"]
        assert parsed.books[0].title == "Dune"
        assert parsed.skipped == 1


class TestPagination:
    def test_no_landmark_degenerates(
        self, build_card: Callable[..., str], build_page: Callable[..., str]
    ) -> None:
        parsed = parse_search_page(build_page([build_card("a", "T", "A")]), BASE_URL)
        pagination = parsed.pagination
        assert pagination.current_page == 1
        assert pagination.total_pages == 1
        assert pagination.page_list == (1,)
        assert pagination.has_next is False
        assert pagination.has_prev is False

    def test_page_numbers_come_from_query_param_not_text(self) -> None:
        html = (
            '<html><body><nav aria-label="Pagination">'
            '<a href="/search?q=x&amp;page=1" aria-current="page">1</a>'
            '<a href="/search?q=x&amp;page=2">two</a>'
            '<a href="/search?q=x&amp;page=9">»</a>'
            "</nav></body></html>"
        )
        pagination = parse_search_page(html, BASE_URL).pagination
        assert pagination.page_list == (1, 2, 9)
        assert pagination.total_pages == 9
        assert pagination.has_next is True
        assert pagination.has_prev is False

    def test_last_page(self, build_pagination: Callable[..., str]) -> None:
        html = f"<html><body>{build_pagination([1, 2, 3], current=3)}</body></html>"
        pagination = parse_search_page(html, BASE_URL).pagination
        assert pagination.current_page == 3
        assert pagination.total_pages == 3
        assert pagination.has_next is False
        assert pagination.has_prev is True

    def test_current_page_from_href_when_text_is_not_numeric(self) -> None:
        html = (
            '<html><body><nav aria-label="pagination">'
            '<a href="/search?page=4" aria-current="page">current</a>'
            '<a href="/search?page=5">5</a>'
            "</nav></body></html>"
        )
        pagination = parse_search_page(html, BASE_URL).pagination
        assert pagination.current_page == 4
        assert pagination.page_list == (4, 5)

    def test_invalid_page_params_ignored(self) -> None:
        html = (
            '<html><body><nav aria-label="Pagination">'
            '<a href="/search?page=0">0</a>'
            '<a href="/search?page=abc">x</a>'
            '<a href="/search?page=2">2</a>'
            "</nav></body></html>"
        )
        pagination = parse_search_page(html, BASE_URL).pagination
        assert pagination.current_page == 1
        assert pagination.page_list == (1, 2)

    def test_other_navs_ignored(self) -> None:
        html = (
            '<html><body><nav aria-label="Main"><a href="/search?page=7">7</a></nav>'
            "</body></html>"
        )
        assert parse_search_page(html, BASE_URL).pagination == Pagination.single()


class TestMalformedDocument:
    @pytest.mark.parametrize("body", ["", "   \n\t"])
    def test_blank_document(self, body: str) -> None:
        with pytest.raises(MalformedDocument) as exc_info:
            parse_search_page(body, BASE_URL)
        assert exc_info.value.code == ErrorCode.MALFORMED_DOCUMENT

    def test_plain_text_is_not_a_document(self) -> None:
        with pytest.raises(MalformedDocument):
            parse_search_page('{"contents": "rate limited"}', BASE_URL)


class TestHelpers:
    def test_strip_comment_delimiters(self) -> None:
        assert strip_comment_delimiters("<div><!--<a>x</a>--></div>") == "<div><a>x</a></div>"

    @pytest.mark.parametrize(
        ("details", "expected"),
        [
            ("English [en], .epub, 0.5MB", "0.5 MB"),
            ("12 kb", "12 KB"),
            ("2.25 Gb, pdf", "2.25 GB"),
            ("no size here", "N/A"),
        ],
    )
    def test_parse_size_label(self, details: str, expected: str) -> None:
        assert parse_size_label(details) == expected

    @pytest.mark.parametrize(
        ("details", "expected"),
        [
            ("English [en], .epub, 0.5MB", "EPUB"),
            ("dune.AZW3", "AZW3"),
            ("PDF · 3MB", "PDF"),
            ("English [en], 3MB", "Unknown"),
            ("epubs and more", "Unknown"),
        ],
    )
    def test_parse_format_label(self, details: str, expected: str) -> None:
        assert parse_format_label(details) == expected
