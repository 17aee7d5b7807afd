"""Frontmatter parsing and markdown rendering for case-study files."""

import html
import json
import re

import mistune

FIELD_RE = re.compile(r'^([A-Za-z0-9_]+):\s*(.*)$')
LIST_ITEM_RE = re.compile(r'^\s*-\s+(.*)$')
QUOTED_RE = re.compile(r'^"(.*)"$')

# Keys whose inline value may be a JSON array, e.g. tags: ["a", "b"]
LIST_KEYS = ('tags',)

FENCE = '```'
HEADINGS = (
    (2, re.compile(r'^##\s+(.*)$')),
    (3, re.compile(r'^###\s+(.*)$')),
)
BULLET_RE = re.compile(r'^-\s+(.*)$')
NUMBERED_RE = re.compile(r'^\d+\.\s+(.*)$')

# Only http(s) and root-relative targets become anchors
INLINE_LINK_RE = re.compile(r'\[([^\]]+)\]\((https?://[^\s)]+|/[^\s)]+)\)')
BOLD_RE = re.compile(r'\*\*([^*]+)\*\*')
ITALIC_RE = re.compile(r'\*([^*]+)\*')


def _unquote(value):
    match = QUOTED_RE.match(value)
    return match.group(1) if match else value


def parse_frontmatter(content):
    """Split a markdown file into (metadata, body).

    The metadata block opens with a '---' line and closes with the next
    '---' line. A key with an empty value starts a list that collects the
    following '- item' lines. Without a closing marker the whole file is
    treated as body and the metadata is empty.
    """
    text = (content or '').replace('\r\n', '\n')
    lines = text.split('\n')
    if lines[0].strip() != '---':
        return {}, text.strip()

    end_index = None
    for idx in range(1, len(lines)):
        if lines[idx].strip() == '---':
            end_index = idx
            break
    if end_index is None:
        return {}, text.strip()

    frontmatter = {}
    current_key = None

    for line in lines[1:end_index]:
        if not line.strip():
            continue

        # List items belong to the last key that had an empty value
        if current_key:
            item = LIST_ITEM_RE.match(line)
            if item:
                frontmatter[current_key].append(_unquote(item.group(1).strip()))
                continue
            current_key = None

        field = FIELD_RE.match(line)
        if not field:
            continue

        key, value = field.group(1), field.group(2).strip()
        if not value:
            frontmatter[key] = []
            current_key = key
        elif key in LIST_KEYS and value.startswith('[') and value.endswith(']'):
            try:
                frontmatter[key] = json.loads(value)
            except ValueError:
                frontmatter[key] = value
        else:
            frontmatter[key] = _unquote(value)

    body = '\n'.join(lines[end_index + 1:]).strip()
    return frontmatter, body


def format_inline(text):
    """Escape one line of text, then apply links, bold and italic in that order."""
    escaped = html.escape(text)
    escaped = INLINE_LINK_RE.sub(_link_html, escaped)
    escaped = BOLD_RE.sub(r'<strong>\1</strong>', escaped)
    escaped = ITALIC_RE.sub(r'<em>\1</em>', escaped)
    return escaped


def _link_html(match):
    # The match is taken from escaped text, so the url is unescaped first
    href = html.escape(mistune.escape_url(match.group(2)).replace('*', '%2A'))
    return f'<a href="{href}" target="_blank" rel="noopener noreferrer">{match.group(1)}</a>'


def _match_heading(line):
    for level, pattern in HEADINGS:
        match = pattern.match(line)
        if match:
            return level, match.group(1)
    return None


def render_markdown(text):
    """Convert case body markdown to HTML.

    Works line by line: a fence line toggles a code block, a blank line ends
    the open paragraph and list, '## ' and '### ' lines become headings,
    '- ' and '1. ' lines build lists and every other line joins the current
    paragraph.
    """
    source = (text or '').replace('\r\n', '\n')
    if not source.strip():
        return ''

    output = []
    paragraph = []
    code_lines = []
    list_tag = None
    in_code = False

    def flush_paragraph():
        if paragraph:
            output.append(f'<p>{format_inline(" ".join(paragraph))}</p>')
            paragraph.clear()

    def close_list():
        nonlocal list_tag
        if list_tag:
            output.append(f'</{list_tag}>')
            list_tag = None

    def flush_code():
        nonlocal in_code
        if in_code:
            code = html.escape('\n'.join(code_lines))
            output.append(f'<pre><code>{code}</code></pre>')
            code_lines.clear()
            in_code = False

    def add_list_item(tag, item):
        nonlocal list_tag
        flush_paragraph()
        if list_tag != tag:
            close_list()
            list_tag = tag
            output.append(f'<{tag}>')
        output.append(f'<li>{format_inline(item)}</li>')

    for line in source.split('\n'):
        stripped = line.strip()

        if stripped.startswith(FENCE):
            if in_code:
                flush_code()
            else:
                flush_paragraph()
                close_list()
                in_code = True
            continue

        if in_code:
            code_lines.append(line)
            continue

        if not stripped:
            flush_paragraph()
            close_list()
            continue

        heading = _match_heading(stripped)
        if heading:
            flush_paragraph()
            close_list()
            level, title = heading
            output.append(f'<h{level}>{format_inline(title)}</h{level}>')
            continue

        bullet = BULLET_RE.match(stripped)
        if bullet:
            add_list_item('ul', bullet.group(1))
            continue

        numbered = NUMBERED_RE.match(stripped)
        if numbered:
            add_list_item('ol', numbered.group(1))
            continue

        paragraph.append(stripped)

    flush_paragraph()
    close_list()
    flush_code()
    return '\n'.join(output)


def strip_markdown(text):
    """Reduce markdown to plain text for feeds and structured data."""
    if not text:
        return ''
    # Fenced code blocks are dropped entirely
    text = re.sub(r'```[\s\S]*?```', ' ', text)
    # Inline code, images and links keep their text
    text = re.sub(r'`([^`]+)`', r'\1', text)
    text = re.sub(r'!\[([^\]]*)\]\([^)]+\)', r'\1', text)
    text = re.sub(r'\[([^\]]+)\]\(([^)]+)\)', r'\1', text)
    # Heading, quote, emphasis and list markers
    text = re.sub(r'[#>*_\-]', ' ', text)
    text = re.sub(r'\s+', ' ', text)
    return text.strip()
