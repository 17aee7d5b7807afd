#!/usr/bin/env python3
"""Generate the case-study archive, sitemap, RSS feed and robots.txt from markdown content."""

import argparse
import sys
from pathlib import Path

from case_cards import (
    load_cards_from_json,
    load_cards_from_markdown,
    load_config,
    normalize_cards,
)
from case_errors import GenerationError, WriteError
from case_pages import (
    LABELS,
    render_case_detail,
    render_cases_index,
    render_home_preview,
    render_legacy_json,
    render_robots_txt,
    render_rss,
    render_sitemap,
)

# Defaults, relative to the project root
CONTENT_DIR = Path('cases-data')
CONFIG_FILE = Path('site.config.json')
CASES_DIR = Path('cases')
HOME_PREVIEW_FILE = Path('sections') / 'cases.html'
LEGACY_JSON_FILE = Path('sections') / 'case-studies' / 'case-studies.json'


def write_file(root, relative_path, content):
    """Write one output file under root, creating parent directories."""
    output_path = Path(root) / relative_path
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding='utf-8')
    except OSError as exc:
        raise WriteError(f'cannot write {output_path}: {exc}') from exc
    return output_path


def render_site(cards, config, now=None, legacy_json=True):
    """Render every output file in memory.

    Returns a list of (relative path, content) pairs in write order.
    """
    outputs = [(CASES_DIR / 'index.html', render_cases_index(cards, config))]

    # Detail pages with prev/next taken from the sorted order
    for idx, card in enumerate(cards):
        previous_card = cards[idx - 1] if idx > 0 else None
        next_card = cards[idx + 1] if idx < len(cards) - 1 else None
        outputs.append((
            CASES_DIR / card.slug / 'index.html',
            render_case_detail(card, config, previous_card, next_card, now=now),
        ))

    outputs.append((HOME_PREVIEW_FILE, render_home_preview(cards, config)))
    outputs.append((Path('sitemap.xml'), render_sitemap(cards, config, now=now)))
    outputs.append((CASES_DIR / 'feed.xml', render_rss(cards, config, now=now)))
    outputs.append((Path('robots.txt'), render_robots_txt(config)))
    if legacy_json:
        outputs.append((LEGACY_JSON_FILE, render_legacy_json(cards)))
    return outputs


def generate(root, content_dir=None, config_file=None, json_file=None,
             legacy_json=True, now=None, verbose=False):
    """Run the whole pipeline and return the normalized cards.

    Nothing is written until every card has been validated and every page
    rendered; a failing write stops the run with earlier files left in place.
    """
    root = Path(root)
    config = load_config(config_file or root / CONFIG_FILE)

    if json_file:
        entries = load_cards_from_json(json_file)
    else:
        entries = load_cards_from_markdown(content_dir or root / CONTENT_DIR)

    default_category = LABELS.get(config.language, LABELS['en'])['uncategorized']
    cards = normalize_cards(entries, default_category=default_category)

    outputs = render_site(cards, config, now=now, legacy_json=legacy_json)
    for relative_path, content in outputs:
        write_file(root, relative_path, content)
        if verbose:
            print(f'  Created: {relative_path.as_posix()}')

    return cards


def build_arg_parser():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--root', default='.', help='Project root that receives the generated files')
    parser.add_argument('--content-dir', help=f'Directory of case markdown files (default: <root>/{CONTENT_DIR})')
    parser.add_argument('--from-json', metavar='FILE', help='Read cards from a legacy {"cards": [...]} JSON file instead of markdown')
    parser.add_argument('--config', help=f'Site config JSON (default: <root>/{CONFIG_FILE})')
    parser.add_argument('--no-legacy-json', action='store_true', help='Do not write the legacy JSON mirror of the cards')
    parser.add_argument('-v', '--verbose', action='store_true', help='Print every file written')
    return parser


def main(argv=None):
    args = build_arg_parser().parse_args(argv)

    try:
        cards = generate(
            args.root,
            content_dir=args.content_dir,
            config_file=args.config,
            json_file=args.from_json,
            legacy_json=not args.no_legacy_json,
            verbose=args.verbose,
        )
    except GenerationError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    source = 'legacy JSON' if args.from_json else 'markdown'
    print(f'generated {len(cards)} cases from {source}, sitemap.xml, robots.txt')
    return 0


if __name__ == '__main__':
    sys.exit(main())
