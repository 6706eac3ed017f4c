"""Tests for the Textile formatter."""

from gitwiki.markup import render_markup


class TestRenderMarkup:
    def test_empty(self):
        assert render_markup("") == ""
        assert render_markup("   \n") == ""

    def test_paragraph(self):
        assert "<p>Hello</p>" in render_markup("Hello")

    def test_heading_and_emphasis(self):
        html = render_markup("h1. Title\n\nSome _quiet_ and *loud* words")
        assert "<h1>Title</h1>" in html
        assert "<em>quiet</em>" in html
        assert "<strong>loud</strong>" in html
