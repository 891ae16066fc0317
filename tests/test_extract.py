"""
Tests for document link extraction.
"""

from __future__ import annotations

from erpro.verification.extract import extract_links


class TestExtractLinks:
    """Test URL discovery in generated text."""

    def test_finds_links_in_markdown_table(self) -> None:
        """Test that table cells are split on pipes."""
        text = (
            "| Year | Title | URL | Source |\n"
            "| 2023 | 10-K | https://ir.acme.example/2023.pdf | SEC |\n"
            "| 2022 | 10-K |https://ir.acme.example/2022.pdf| SEC |\n"
        )

        assert extract_links(text) == [
            "https://ir.acme.example/2023.pdf",
            "https://ir.acme.example/2022.pdf",
        ]

    def test_deduplicates_preserving_first_seen_order(self) -> None:
        """Test that repeated URLs are returned once, in order of appearance."""
        text = "b https://x.example/b.pdf a https://x.example/a.pdf again https://x.example/b.pdf"

        assert extract_links(text) == ["https://x.example/b.pdf", "https://x.example/a.pdf"]

    def test_suffix_is_case_insensitive(self) -> None:
        """Test that upper-case suffixes match and keep their case."""
        assert extract_links("see http://x.example/Report.PDF now") == ["http://x.example/Report.PDF"]

    def test_stops_at_closing_bracket(self) -> None:
        """Test markdown link syntax."""
        text = "[Annual report](https://x.example/ar.pdf) and <https://x.example/y.pdf>"

        assert extract_links(text) == ["https://x.example/ar.pdf", "https://x.example/y.pdf"]

    def test_ignores_non_matching_suffix(self) -> None:
        """Test that HTML pages and longer extensions are not matched."""
        text = "https://x.example/ir.html https://x.example/file.pdfx https://x.example/dir.pdf/page"

        assert extract_links(text) == []

    def test_other_suffix(self) -> None:
        """Test extraction with a non-default suffix."""
        text = "https://x.example/a.xlsx https://x.example/b.pdf"

        assert extract_links(text, ".xlsx") == ["https://x.example/a.xlsx"]

    def test_trailing_punctuation(self) -> None:
        """Test that a sentence-ending period is not part of the URL."""
        assert extract_links("Read https://x.example/a.pdf.") == ["https://x.example/a.pdf"]

    def test_empty_and_link_free_text(self) -> None:
        """Test that absent links yield an empty list."""
        assert extract_links("") == []
        assert extract_links("No documents were found for this company.") == []
        assert extract_links("ftp://x.example/a.pdf") == []
