"""
Rendering of AI summary text into safe HTML.

The summary webhook answers with HTML, Markdown or plain text, sometimes
wrapped in ``` fences. render_summary_html() unwraps the fences, converts
Markdown when the content is not HTML, and passes everything through an
allow-list sanitizer.
"""
import re
from html import escape
from html.parser import HTMLParser

ALLOWED_TAGS = frozenset({
    'div', 'p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'table', 'thead', 'tbody', 'tr', 'th', 'td',
    'ul', 'ol', 'li', 'strong', 'b', 'em', 'i', 'br',
    'span', 'section', 'aside',
})

# Elements dropped together with their content
DROPPED_TAGS = frozenset({'script', 'style'})

VOID_TAGS = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'param', 'source', 'track', 'wbr',
})

STRIPPED_ATTRIBUTES = frozenset({'src', 'href', 'style'})

FENCE_OPEN_RE = re.compile(r'^\s*```(?:html|text)?\s*', re.IGNORECASE)
FENCE_CLOSE_RE = re.compile(r'\s*```\s*$', re.IGNORECASE)

TABLE_SEPARATOR_RE = re.compile(r'^(\s*\|?[\s:-]+\|[\s:-]+\|?)')
H3_RE = re.compile(r'^### (.+)$', re.MULTILINE)
H2_RE = re.compile(r'^## (.+)$', re.MULTILINE)
H1_RE = re.compile(r'^# (.+)$', re.MULTILINE)
BOLD_RE = re.compile(r'\*\*(.+?)\*\*')
ITALIC_RE = re.compile(r'\*(.+?)\*')
PARAGRAPH_BREAK_RE = re.compile(r'\n{2,}')


def strip_fences(text):
    """Remove a leading ```/```html/```text fence and a trailing ``` fence."""
    out = (text or '').strip()
    out = FENCE_OPEN_RE.sub('', out, count=1)
    out = FENCE_CLOSE_RE.sub('', out, count=1)
    return out.strip()


class _AllowListSanitizer(HTMLParser):
    """
    Rebuilds markup keeping only ALLOWED_TAGS.

    A disallowed element is replaced by its escaped text content; script and
    style elements disappear with their content; on* / src / href / style
    attributes are removed from kept elements.
    """

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.out = []
        self.open_tags = []
        self.dropped_depth = 0
        self.flatten_stack = []

    def handle_starttag(self, tag, attrs):
        if tag in DROPPED_TAGS:
            self.dropped_depth += 1
            return
        if self.dropped_depth:
            return

        if self.flatten_stack or tag not in ALLOWED_TAGS:
            if tag not in VOID_TAGS:
                self.flatten_stack.append(tag)
            return

        kept = ''.join(
            f' {name}="{escape(value or "", quote=True)}"'
            for name, value in attrs
            if not name.startswith('on') and name not in STRIPPED_ATTRIBUTES
        )
        self.out.append(f'<{tag}{kept}>')
        if tag not in VOID_TAGS:
            self.open_tags.append(tag)

    def handle_startendtag(self, tag, attrs):
        # Self-closing elements have no text content to keep
        if self.dropped_depth or self.flatten_stack or tag not in ALLOWED_TAGS:
            return
        self.handle_starttag(tag, attrs)
        if tag not in VOID_TAGS:
            self.handle_endtag(tag)

    def handle_endtag(self, tag):
        if tag in DROPPED_TAGS:
            if self.dropped_depth:
                self.dropped_depth -= 1
            return
        if self.dropped_depth:
            return

        if self.flatten_stack:
            if tag in self.flatten_stack:
                # Closing an element also closes anything left open inside it
                while self.flatten_stack.pop() != tag:
                    pass
                return
            if tag not in self.open_tags:
                return
            self.flatten_stack = []

        if tag not in self.open_tags:
            return
        while self.open_tags:
            current = self.open_tags.pop()
            self.out.append(f'</{current}>')
            if current == tag:
                break

    def handle_data(self, data):
        if self.dropped_depth:
            return
        self.out.append(escape(data, quote=False))

    def result(self):
        self.close()
        while self.open_tags:
            self.out.append(f'</{self.open_tags.pop()}>')
        return ''.join(self.out)


def sanitize_html(html_string):
    """Apply the allow-list sanitizer and return the rebuilt markup."""
    parser = _AllowListSanitizer()
    parser.feed(html_string or '')
    return parser.result()


def _inline(text):
    text = BOLD_RE.sub(r'<strong>\1</strong>', text)
    return ITALIC_RE.sub(r'<em>\1</em>', text)


def _split_row(line):
    return [cell.strip() for cell in line.strip().strip('|').split('|')]


def markdown_to_html(md):
    """
    Minimal Markdown conversion: the first pipe table, # headings, bold and
    italic. Text without a table becomes <p> paragraphs with <br> line breaks.
    """
    lines = re.split(r'\r?\n', md)

    i = 0
    while i < len(lines) and '|' not in lines[i]:
        i += 1

    if i < len(lines) and i + 1 < len(lines) and TABLE_SEPARATOR_RE.match(lines[i + 1]):
        headers = [h.strip() for h in lines[i].split('|') if h.strip()]
        rows = []
        j = i + 2
        while j < len(lines) and '|' in lines[j]:
            rows.append(_split_row(lines[j])[:len(headers)])
            j += 1

        th = ''.join(f'<th>{h}</th>' for h in headers)
        trs = ''.join(
            '<tr>' + ''.join(f'<td>{cell}</td>' for cell in row) + '</tr>'
            for row in rows
        )
        table_html = f'<table><thead><tr>{th}</tr></thead><tbody>{trs}</tbody></table>'

        before = '\n'.join(lines[:i])
        after = '\n'.join(lines[j:])
        rest = '\n\n'.join(part for part in (before, table_html, after) if part)

        rest = H3_RE.sub(r'<h3>\1</h3>', rest)
        rest = H2_RE.sub(r'<h2>\1</h2>', rest)
        rest = H1_RE.sub(r'<h1>\1</h1>', rest)
        rest = _inline(rest)
        return PARAGRAPH_BREAK_RE.sub('</p><p>', rest)

    return ''.join(
        '<p>' + _inline(paragraph).replace('\n', '<br>') + '</p>'
        for paragraph in PARAGRAPH_BREAK_RE.split(md)
    )


def escape_plaintext(text):
    return text.replace('<', '&lt;').replace('>', '&gt;')


def render_summary_html(raw):
    """
    Turn raw webhook output into display-safe HTML.

    Falls back to the fence-stripped text with angle brackets escaped when
    sanitizing leaves nothing.
    """
    cleaned = strip_fences(raw)
    if cleaned.strip().startswith('<'):
        rendered = sanitize_html(cleaned)
    else:
        rendered = sanitize_html(markdown_to_html(cleaned))
    return rendered or escape_plaintext(cleaned)
