"""Load, validate and sort case-study cards."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from case_errors import ConfigError, EmptyContentError, ValidationError
from case_markdown import parse_frontmatter

DEFAULT_SITE_NAME = 'DemoLabs'
DEFAULT_SITE_URL = 'https://demolabskr.github.io'
DEFAULT_LANGUAGE = 'en'
LANGUAGES = ('en', 'ko')
DEFAULT_CATEGORY = 'uncategorized'

# Generated files that share cases/ with the per-case directories
RESERVED_SLUGS = ('index.html', 'feed.xml')

# Accepted besides ISO 8601
DATE_FORMATS = ('%Y-%m-%d %H:%M:%S', '%Y/%m/%d', '%Y.%m.%d')

MONTHS_EN = ['January', 'February', 'March', 'April', 'May', 'June',
             'July', 'August', 'September', 'October', 'November', 'December']
DATE_PLACEHOLDERS = {'en': 'Date TBD', 'ko': '날짜 미정'}


@dataclass(frozen=True)
class SiteConfig:
    site_name: str = DEFAULT_SITE_NAME
    site_url: str = DEFAULT_SITE_URL
    language: str = DEFAULT_LANGUAGE


@dataclass(frozen=True)
class Card:
    slug: str
    title: str = ''
    date: str = ''
    category: str = DEFAULT_CATEGORY
    description: str = ''
    challenge: str = ''
    approach: str = ''
    outcome: str = ''
    image: str = ''
    image_alt: str = ''
    tags: tuple = field(default_factory=tuple)
    body_markdown: str = ''

    @property
    def published(self):
        return parse_date(self.date)


def normalize_site_url(url):
    """Strip trailing slashes so paths can be appended directly."""
    return (url or '').strip().rstrip('/')


def load_config(path):
    """Read the site config JSON, falling back to defaults when it is unusable."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError):
        return SiteConfig()
    if not isinstance(data, dict):
        return SiteConfig()

    site_name = data.get('siteName')
    if not isinstance(site_name, str) or not site_name.strip():
        site_name = DEFAULT_SITE_NAME

    site_url = data.get('siteUrl')
    if not isinstance(site_url, str) or not normalize_site_url(site_url):
        site_url = DEFAULT_SITE_URL

    language = data.get('language')
    if language not in LANGUAGES:
        language = DEFAULT_LANGUAGE

    return SiteConfig(
        site_name=site_name.strip(),
        site_url=normalize_site_url(site_url),
        language=language,
    )


def parse_date(value):
    """Parse a card date into an aware UTC datetime, or None."""
    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'

    parsed = None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_date(value, lang=DEFAULT_LANGUAGE):
    """Format a card date for display."""
    dt = parse_date(value)
    if dt is None:
        return DATE_PLACEHOLDERS.get(lang, DATE_PLACEHOLDERS[DEFAULT_LANGUAGE])
    if lang == 'ko':
        return f'{dt.year}. {dt.month:02d}. {dt.day:02d}.'
    return f'{MONTHS_EN[dt.month - 1]} {dt.day}, {dt.year}'


def is_case_file(path):
    """Markdown files count as cases except README.md and _-prefixed drafts."""
    name = path.name
    return (
        path.is_file()
        and name.endswith('.md')
        and name != 'README.md'
        and not name.startswith('_')
    )


def load_cards_from_markdown(content_dir):
    """Read raw card records from a directory of markdown files.

    Returns a list of (record, fallback_slug) pairs in file-name order. The
    frontmatter becomes the record and the body is stored under
    'bodyMarkdown'; the fallback slug is the file name without '.md'.
    """
    content_dir = Path(content_dir)
    if not content_dir.is_dir():
        raise ConfigError(f'missing case content directory: {content_dir}')

    try:
        files = sorted((p for p in content_dir.iterdir() if is_case_file(p)), key=lambda p: p.name)
    except OSError as exc:
        raise ConfigError(f'cannot read case content directory {content_dir}: {exc}') from exc

    if not files:
        raise EmptyContentError(f'no markdown files found in {content_dir}')

    entries = []
    for path in files:
        try:
            content = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f'cannot read {path}: {exc}') from exc
        meta, body = parse_frontmatter(content)
        record = dict(meta)
        record['bodyMarkdown'] = body
        entries.append((record, path.name[:-len('.md')]))
    return entries


def load_cards_from_json(json_file):
    """Read raw card records from a legacy {"cards": [...]} JSON file."""
    json_file = Path(json_file)
    try:
        with open(json_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as exc:
        raise ConfigError(f'cannot read legacy card file {json_file}: {exc}') from exc
    except ValueError as exc:
        raise ConfigError(f'invalid JSON in {json_file}: {exc}') from exc

    cards = data.get('cards') if isinstance(data, dict) else None
    if not isinstance(cards, list):
        raise ConfigError(f'{json_file} has no "cards" list')

    entries = [(dict(card), None) for card in cards if isinstance(card, dict)]
    if not entries:
        raise EmptyContentError(f'no cards found in {json_file}')
    return entries


def _text(value):
    if value is None:
        return ''
    if isinstance(value, (list, tuple)):
        return ', '.join(str(item) for item in value).strip()
    return str(value).strip()


def _tags(value):
    if isinstance(value, str):
        value = value.split(',')
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(tag for tag in (_text(item) for item in value) if tag)


def normalize_card(record, index, fallback_slug=None, default_category=DEFAULT_CATEGORY):
    """Build a Card from a raw record; index is the 0-based encounter position."""
    raw_slug = record.get('slug')
    slug = _text(raw_slug if raw_slug else (fallback_slug or f'case-{index + 1}'))
    if not slug:
        raise ValidationError(f'invalid slug at index {index}')
    if '/' in slug or '\\' in slug or slug in ('.', '..'):
        raise ValidationError(f'slug is not a single path segment: {slug}')
    if slug in RESERVED_SLUGS:
        raise ValidationError(f'slug is reserved for a generated file: {slug}')

    return Card(
        slug=slug,
        title=_text(record.get('title')),
        date=_text(record.get('date')),
        category=_text(record.get('category')) or default_category,
        description=_text(record.get('description')),
        challenge=_text(record.get('challenge')),
        approach=_text(record.get('approach')),
        # 'result' is the older name of this field
        outcome=_text(record.get('outcome')) or _text(record.get('result')),
        image=_text(record.get('image')),
        image_alt=_text(record.get('imageAlt')),
        tags=_tags(record.get('tags')),
        body_markdown=_text(record.get('bodyMarkdown')),
    )


def sort_cards(cards):
    """Newest first; undated cards follow in their original order."""
    dated = [card for card in cards if card.published is not None]
    undated = [card for card in cards if card.published is None]
    dated.sort(key=lambda card: card.published, reverse=True)
    return dated + undated


def normalize_cards(entries, default_category=DEFAULT_CATEGORY):
    """Validate (record, fallback_slug) pairs and return sorted Cards.

    Raises ValidationError on the first empty or repeated slug.
    """
    seen = set()
    cards = []
    for index, (record, fallback_slug) in enumerate(entries):
        card = normalize_card(record, index, fallback_slug, default_category)
        if card.slug in seen:
            raise ValidationError(f'duplicate slug: {card.slug}')
        seen.add(card.slug)
        cards.append(card)
    return sort_cards(cards)
