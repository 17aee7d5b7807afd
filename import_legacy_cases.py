#!/usr/bin/env python3
"""Convert a legacy case-studies JSON file into markdown case files."""

import argparse
import sys
from pathlib import Path

from case_cards import load_cards_from_json, normalize_cards
from case_errors import GenerationError
from generate_cases import CONTENT_DIR, write_file

FRONTMATTER_FIELDS = [
    ('slug', 'slug'),
    ('title', 'title'),
    ('date', 'date'),
    ('category', 'category'),
    ('description', 'description'),
    ('challenge', 'challenge'),
    ('approach', 'approach'),
    ('outcome', 'outcome'),
    ('image', 'image'),
    ('imageAlt', 'image_alt'),
]


def _quote(value):
    # Frontmatter values are single-line
    return '"' + ' '.join(value.split()) + '"'


def create_frontmatter(card):
    """Create the frontmatter block for a card; empty fields are left out."""
    lines = ['---']
    for key, attr in FRONTMATTER_FIELDS:
        value = getattr(card, attr)
        if value:
            lines.append(f'{key}: {_quote(value)}')

    if card.tags:
        lines.append('tags:')
        lines.extend(f'  - {tag}' for tag in card.tags)
    else:
        lines.append('tags: []')

    lines.append('---')
    return '\n'.join(lines)


def case_filename(card):
    """Markdown file name for a card, prefixed with its date when it has one."""
    published = card.published
    date_prefix = published.strftime('%Y-%m-%d-') if published else ''
    return f'{date_prefix}{card.slug}.md'


def render_case_file(card):
    content = create_frontmatter(card) + '\n'
    if card.body_markdown:
        content += '\n' + card.body_markdown + '\n'
    return content


def import_cards(json_file, content_dir, force=False):
    """Write one markdown file per legacy card.

    Returns (created, skipped) lists of file names. Existing files are kept
    unless force is set.
    """
    content_dir = Path(content_dir)
    cards = normalize_cards(load_cards_from_json(json_file), default_category='')

    created = []
    skipped = []
    for card in cards:
        filename = case_filename(card)
        if (content_dir / filename).exists() and not force:
            skipped.append(filename)
            continue
        write_file(content_dir, filename, render_case_file(card))
        created.append(filename)
    return created, skipped


def build_arg_parser():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('json_file', help='Legacy {"cards": [...]} JSON file')
    parser.add_argument('--content-dir', default=str(CONTENT_DIR), help='Directory that receives the markdown files')
    parser.add_argument('--force', action='store_true', help='Overwrite existing markdown files')
    return parser


def main(argv=None):
    args = build_arg_parser().parse_args(argv)

    try:
        created, skipped = import_cards(args.json_file, args.content_dir, force=args.force)
    except GenerationError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    for filename in created:
        print(f'  Created: {filename}')
    for filename in skipped:
        print(f'  Skipped (exists): {filename}')
    print(f'✓ Imported {len(created)} cases into {args.content_dir}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
