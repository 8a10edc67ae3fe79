"""
Tests for AI summary HTML rendering and sanitization.
"""
from apps.clinical.summary_html import (
    escape_plaintext,
    markdown_to_html,
    render_summary_html,
    sanitize_html,
    strip_fences,
)


class TestStripFences:

    def test_html_fence_unwrapped(self):
        assert strip_fences('```html\n<p>ok</p>\n```') == '<p>ok</p>'

    def test_plain_fence_unwrapped(self):
        assert strip_fences('```\nhello\n```') == 'hello'

    def test_unfenced_text_untouched(self):
        assert strip_fences('  <p>ok</p>  ') == '<p>ok</p>'

    def test_none_becomes_empty(self):
        assert strip_fences(None) == ''


class TestSanitizer:

    def test_script_dropped_with_content(self):
        assert sanitize_html('<p>ok</p><script>alert(1)</script>') == '<p>ok</p>'

    def test_allowed_markup_kept(self):
        html = '<table><thead><tr><th>Test</th></tr></thead><tbody><tr><td>Hb</td></tr></tbody></table>'
        assert sanitize_html(html) == html

    def test_event_handlers_and_links_stripped(self):
        out = sanitize_html('<div onclick="steal()" class="card" style="color:red">x</div>')

        assert out == '<div class="card">x</div>'

    def test_disallowed_tag_replaced_by_text(self):
        assert sanitize_html('<p>see <a href="http://evil">here</a></p>') == '<p>see here</p>'

    def test_self_closing_disallowed_tag_does_not_swallow_text(self):
        assert sanitize_html('<p>a<img src="x"/>b</p>') == '<p>ab</p>'

    def test_unclosed_disallowed_child_keeps_following_markup(self):
        assert sanitize_html('<a><custom>x</a><p>ok</p>') == 'x<p>ok</p>'

    def test_allowed_end_tag_closes_disallowed_child(self):
        assert sanitize_html('<p>a<custom>b</p><p>ok</p>') == '<p>ab</p><p>ok</p>'

    def test_text_is_escaped(self):
        assert sanitize_html('<p>1 &lt; 2</p>') == '<p>1 &lt; 2</p>'

    def test_unclosed_tags_closed(self):
        assert sanitize_html('<div><p>open') == '<div><p>open</p></div>'


class TestMarkdown:

    def test_table_converted(self):
        md = 'Results:\n| Test | Value |\n|---|---|\n| Hb | 13.2 |\n| WBC | 7000 |'

        html = markdown_to_html(md)

        assert '<table><thead><tr><th>Test</th><th>Value</th></tr></thead>' in html
        assert '<tr><td>Hb</td><td>13.2</td></tr>' in html
        assert '<tr><td>WBC</td><td>7000</td></tr>' in html

    def test_paragraphs_without_table(self):
        html = markdown_to_html('**Impression**\nMild anaemia\n\nRepeat in *two* weeks')

        assert html == '<p><strong>Impression</strong><br>Mild anaemia</p><p>Repeat in <em>two</em> weeks</p>'

    def test_headings_with_table(self):
        md = '## Findings\n| A | B |\n|---|---|\n| 1 | 2 |'

        assert markdown_to_html(md).startswith('<h2>Findings</h2>')


class TestRenderSummary:

    def test_fenced_html_unwrapped_then_sanitized(self):
        raw = '```html\n<p>ok</p><script>x()</script>\n```'

        assert render_summary_html(raw) == '<p>ok</p>'

    def test_markdown_rendered(self):
        assert render_summary_html('Normal **CBC**') == '<p>Normal <strong>CBC</strong></p>'

    def test_fallback_to_escaped_text_when_nothing_survives(self):
        raw = '<script>only()</script>'

        assert render_summary_html(raw) == escape_plaintext(raw)
        assert '<script>' not in render_summary_html(raw)
