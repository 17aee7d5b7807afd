"""Render case-study cards into HTML pages, feeds and sitemap.

Every function here is pure: it takes normalized cards and the site config
and returns the file content as a string.
"""

import html
import json
from datetime import datetime, timezone
from email.utils import format_datetime
from xml.sax.saxutils import escape as _xml_escape

from case_cards import format_date, parse_date
from case_markdown import render_markdown, strip_markdown

DEFAULT_COVER_IMAGE = 'images/cover.png'
PREVIEW_SIZE = 3
FEED_SIZE = 50

LABELS = {
    'en': {
        'locale': 'en_US',
        'archive_title': 'Case Archive',
        'archive_description': 'Case studies broken down into challenge, approach and outcome.',
        'archive_intro': 'Case studies kept as standalone documents, newest first.',
        'home': 'Home',
        'cases': 'Cases',
        'view_case': 'View case',
        'case': 'Case',
        'case_description': '{title} case study',
        'challenge': 'Challenge',
        'approach': 'Approach',
        'outcome': 'Outcome',
        'empty_panel': 'Nothing recorded yet.',
        'back_to_list': 'Back to list',
        'previous': 'Previous case',
        'next': 'Next case',
        'preview_title': 'Latest cases',
        'preview_intro': 'Every case has its own page. Start with the latest ones below or open the full archive.',
        'preview_cta': 'Browse the full archive',
        'feed_title': '{site} Cases',
        'feed_description': '{site} case archive feed',
        'archive_footer': 'Cases Archive',
        'detail_footer': 'Case Detail',
        'uncategorized': 'uncategorized',
    },
    'ko': {
        'locale': 'ko_KR',
        'archive_title': '사례 아카이브',
        'archive_description': '문제 정의, 접근, 성과를 구조화한 사례 아카이브입니다.',
        'archive_intro': '정적 문서처럼 관리되는 사례 모음입니다. 최신 순으로 정렬됩니다.',
        'home': '홈',
        'cases': '사례',
        'view_case': '상세 보기',
        'case': '사례',
        'case_description': '{title} 사례',
        'challenge': '문제',
        'approach': '접근',
        'outcome': '성과',
        'empty_panel': '정리된 내용이 없습니다.',
        'back_to_list': '목록으로',
        'previous': '이전 사례',
        'next': '다음 사례',
        'preview_title': '사례 확장 아카이브',
        'preview_intro': '사례를 개별 URL 문서로 확장해 검색 유입과 내부 링크 구조를 강화했습니다. 아래 최신 사례에서 시작하거나 전체 아카이브로 이동할 수 있습니다.',
        'preview_cta': '사례 아카이브 전체 보기',
        'feed_title': '{site} Cases',
        'feed_description': '{site} 사례 아카이브 피드',
        'archive_footer': 'Cases Archive',
        'detail_footer': 'Case Detail',
        'uncategorized': '기타',
    },
}

# Page head, shared by the archive and detail pages
HEAD_TEMPLATE = '''<!doctype html>
<html lang="{lang}" data-theme="light">
    <head>
        <meta charset="utf-8" />
        <meta name="viewport" content="width=device-width, initial-scale=1" />
        <title>{title}</title>
        <link rel="icon" href="{asset_prefix}images/favicon.png" type="image/png" />
        <meta name="description" content="{description}" />
        <meta name="robots" content="index,follow" />
        <!-- Open Graph -->
        <meta property="og:type" content="{og_type}" />
        <meta property="og:locale" content="{og_locale}" />
        <meta property="og:title" content="{title}" />
        <meta property="og:description" content="{description}" />
        <meta property="og:url" content="{canonical}" />
        <meta property="og:image" content="{og_image}" />
        <!-- Twitter Card -->
        <meta name="twitter:card" content="summary_large_image" />
        <meta name="twitter:title" content="{title}" />
        <meta name="twitter:description" content="{description}" />
        <meta name="twitter:image" content="{og_image}" />
        <link rel="canonical" href="{canonical}" />
        <link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/bulma@0.9.4/css/bulma.min.css" />
        <link rel="stylesheet" href="{asset_prefix}css/styles.css" />
        <script type="application/ld+json">{structured_data}</script>
    </head>'''

NAV_TEMPLATE = '''        <nav class="navbar case-nav" role="navigation" aria-label="main navigation">
            <div class="container">
                <div class="navbar-brand">
                    <a class="navbar-item brand" href="/">{site_name}</a>
                </div>
                <div class="navbar-menu is-active">
                    <div class="navbar-end">
                        <a class="navbar-item" href="/">{home_label}</a>
                        <a class="navbar-item{cases_active}" href="/cases/">{cases_label}</a>
                    </div>
                </div>
            </div>
        </nav>'''

FOOTER_TEMPLATE = '''        <footer class="footer">
            <div class="content has-text-centered">
                <p class="brand">{site_name}</p>
                <p class="muted">{footer_label}</p>
            </div>
        </footer>
    </body>
</html>
'''


def escape_html(value):
    """Escape text for HTML text nodes and attributes."""
    return html.escape(str(value or ''), quote=True)


def escape_xml(value):
    """Escape text for XML, using &apos; for single quotes."""
    return _xml_escape(str(value or ''), {'"': '&quot;', "'": '&apos;'})


def safe_json_for_script(value):
    """Serialize JSON for an inline script tag without closing it early."""
    return json.dumps(value, ensure_ascii=False).replace('<', '\\u003c')


def join_url(base, path):
    return f'{base}{path}' if base else path


def is_absolute_url(path):
    return path.startswith(('http://', 'https://'))


def image_path_for_depth(image, depth):
    """Make a root-relative image path usable from a page `depth` levels down."""
    if not image:
        return ''
    if is_absolute_url(image):
        return image
    return '../' * depth + image.lstrip('/')


def _utc(now):
    if now is None:
        return datetime.now(timezone.utc)
    return now.astimezone(timezone.utc)


def to_iso_date(value, now=None):
    """ISO 8601 UTC timestamp for a card date, or for now when unparseable."""
    dt = parse_date(value) or _utc(now)
    return dt.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def to_rfc1123(value, now=None):
    """RFC 1123 timestamp for a card date, or for now when unparseable."""
    dt = parse_date(value) or _utc(now)
    return format_datetime(dt, usegmt=True)


def reveal_delay(position):
    """Animation delay in seconds for the 1-based position, e.g. '0.1'."""
    return f'{0.05 * position:.2f}'.rstrip('0').rstrip('.')


def _labels(config):
    return LABELS.get(config.language, LABELS['en'])


def render_head(config, title, description, canonical, og_image, structured_data,
                og_type='website', asset_prefix=''):
    labels = _labels(config)
    return HEAD_TEMPLATE.format(
        lang=config.language,
        title=escape_html(title),
        description=escape_html(description),
        canonical=escape_html(canonical),
        og_image=escape_html(og_image),
        og_type=escape_html(og_type),
        og_locale=labels['locale'],
        asset_prefix=escape_html(asset_prefix),
        structured_data=safe_json_for_script(structured_data),
    )


def render_nav(config, cases_active=False):
    labels = _labels(config)
    return NAV_TEMPLATE.format(
        site_name=escape_html(config.site_name),
        home_label=escape_html(labels['home']),
        cases_label=escape_html(labels['cases']),
        cases_active=' is-active' if cases_active else '',
    )


def render_footer(config, footer_label):
    return FOOTER_TEMPLATE.format(
        site_name=escape_html(config.site_name),
        footer_label=escape_html(footer_label),
    )


def render_tags(tags):
    return ''.join(f'<span class="tag is-outline">{escape_html(tag)}</span>' for tag in tags)


def render_cases_index(cards, config):
    """Generate the case archive page (cases/index.html)."""
    labels = _labels(config)
    title = f'{labels["archive_title"]} | {config.site_name}'
    description = labels['archive_description']
    canonical = join_url(config.site_url, '/cases/')
    og_image = join_url(config.site_url, '/' + DEFAULT_COVER_IMAGE)

    list_items = []
    for card in cards:
        slug = escape_html(card.slug)
        list_items.append(f'''<article class="sharp-card p-5 case-list-item">
                    <p class="case-list-item__meta">{escape_html(format_date(card.date, config.language))} · {escape_html(card.category)}</p>
                    <h2 class="title is-5"><a href="./{slug}/">{escape_html(card.title)}</a></h2>
                    <p class="muted">{escape_html(card.description)}</p>
                    <div class="case-tag-list mt-4">{render_tags(card.tags)}</div>
                    <div class="mt-4">
                        <a class="button ghost-button is-small" href="./{slug}/">{escape_html(labels["view_case"])}</a>
                    </div>
                </article>''')

    # JSON-LD listing every case in archive order
    jsonld = {
        "@context": "https://schema.org",
        "@type": "CollectionPage",
        "name": labels['archive_title'],
        "description": description,
        "url": canonical,
        "mainEntity": {
            "@type": "ItemList",
            "itemListElement": [
                {
                    "@type": "ListItem",
                    "position": position,
                    "url": join_url(config.site_url, f'/cases/{card.slug}/'),
                    "name": card.title,
                }
                for position, card in enumerate(cards, start=1)
            ],
        },
    }

    head = render_head(config, title, description, canonical, og_image, jsonld, asset_prefix='../')
    items_html = '\n'.join(list_items)
    return f'''{head}
    <body class="cases-page">
{render_nav(config, cases_active=True)}
        <main class="section">
            <div class="container">
                <p class="eyebrow">Cases</p>
                <h1 class="title is-2">{escape_html(labels["archive_title"])}</h1>
                <p class="muted">{escape_html(labels["archive_intro"])}</p>
                <div class="case-list-grid mt-5">
{items_html}
                </div>
            </div>
        </main>
{render_footer(config, labels["archive_footer"])}'''


def render_case_detail(card, config, previous_card=None, next_card=None, now=None):
    """Generate the page for a single case (cases/<slug>/index.html)."""
    labels = _labels(config)
    title = f'{card.title} | {labels["case"]} | {config.site_name}'
    description = card.description or labels['case_description'].format(title=card.title)
    canonical = join_url(config.site_url, f'/cases/{card.slug}/')
    if not card.image:
        image_url = join_url(config.site_url, '/' + DEFAULT_COVER_IMAGE)
    elif is_absolute_url(card.image):
        image_url = card.image
    else:
        image_url = join_url(config.site_url, '/' + card.image.lstrip('/'))

    image_html = ''
    if card.image:
        image_html = f'''<figure class="case-detail-image sharp-card p-4 mt-5">
                    <img src="{escape_html(image_path_for_depth(card.image, 2))}" alt="{escape_html(card.image_alt or card.title)}" loading="lazy" />
                </figure>'''

    content_html = render_markdown(card.body_markdown)
    content_section = ''
    if content_html:
        content_section = f'''<section class="case-content sharp-card p-5 mt-5">
{content_html}
                </section>'''

    # Prev/Next navigation follows the archive order
    previous_html = ''
    next_html = ''
    if previous_card:
        previous_html = f'<a class="button ghost-button is-small case-prev" href="../{escape_html(previous_card.slug)}/">{escape_html(labels["previous"])}</a>'
    if next_card:
        next_html = f'<a class="button ghost-button is-small case-next" href="../{escape_html(next_card.slug)}/">{escape_html(labels["next"])}</a>'

    panels = []
    for key in ('challenge', 'approach', 'outcome'):
        text = getattr(card, key) or labels['empty_panel']
        panels.append(f'''<article class="sharp-card p-5">
                        <h2 class="title is-5">{escape_html(labels[key])}</h2>
                        <p class="muted">{escape_html(text)}</p>
                    </article>''')
    panels_html = '\n                    '.join(panels)

    published = to_iso_date(card.date, now)
    jsonld = {
        "@context": "https://schema.org",
        "@type": "Article",
        "headline": card.title,
        "description": description,
        "datePublished": published,
        "dateModified": published,
        "mainEntityOfPage": canonical,
        "author": {
            "@type": "Organization",
            "name": config.site_name,
        },
        "image": image_url,
        "keywords": ', '.join(card.tags),
        "articleSection": card.category,
        "articleBody": strip_markdown(card.body_markdown),
        "about": [
            {
                "@type": "Thing",
                "name": card.category,
            }
        ],
    }

    head = render_head(
        config, title, description, canonical, image_url, jsonld,
        og_type='article', asset_prefix='../../',
    )
    return f'''{head}
    <body class="case-page">
{render_nav(config)}
        <main class="section">
            <div class="container">
                <p class="case-breadcrumb"><a href="/cases/">{escape_html(labels["archive_title"])}</a> / {escape_html(card.title)}</p>
                <header class="case-page-header">
                    <p class="eyebrow">Case</p>
                    <h1 class="title is-2">{escape_html(card.title)}</h1>
                    <p class="muted">{escape_html(format_date(card.date, config.language))} · {escape_html(card.category)}</p>
                    <p class="muted mt-3">{escape_html(card.description)}</p>
                    <div class="case-tag-list mt-4">{render_tags(card.tags)}</div>
                </header>
                {image_html}
                <section class="case-detail-grid mt-5">
                    {panels_html}
                </section>
                {content_section}
                <div class="case-detail-nav mt-5">
                    <a class="button cta-button is-small" href="/cases/">{escape_html(labels["back_to_list"])}</a>
                    <div class="case-detail-nav__side">
                        {previous_html}
                        {next_html}
                    </div>
                </div>
            </div>
        </main>
{render_footer(config, labels["detail_footer"])}'''


def render_home_preview(cards, config):
    """Generate the home page section with the latest cases (sections/cases.html)."""
    labels = _labels(config)
    columns = []
    for position, card in enumerate(cards[:PREVIEW_SIZE], start=1):
        columns.append(f'''<div class="column is-4">
                        <article class="sharp-card p-5 reveal" style="--delay: {reveal_delay(position)}s">
                            <p class="case-list-item__meta">{escape_html(format_date(card.date, config.language))} · {escape_html(card.category)}</p>
                            <h3 class="title is-5">{escape_html(card.title)}</h3>
                            <p class="muted">{escape_html(card.description)}</p>
                            <div class="mt-4">
                                <a class="button ghost-button is-small" href="/cases/{escape_html(card.slug)}/">{escape_html(labels["view_case"])}</a>
                            </div>
                        </article>
                    </div>''')
    columns_html = '\n'.join(columns)

    return f'''<section id="cases" class="section">
    <div class="container">
        <p class="eyebrow">Cases</p>
        <h2 class="title is-3">{escape_html(labels["preview_title"])}</h2>
        <p class="muted">{escape_html(labels["preview_intro"])}</p>
        <div class="columns mt-5 is-multiline">
{columns_html}
        </div>
        <div class="mt-5">
            <a class="button cta-button" href="/cases/">{escape_html(labels["preview_cta"])}</a>
        </div>
    </div>
</section>
'''


def render_sitemap(cards, config, now=None):
    """Generate sitemap.xml for the home page, the archive and every case."""
    generated = to_iso_date(None, now)
    urls = [
        (f'{config.site_url}/', generated),
        (f'{config.site_url}/cases/', generated),
    ]
    for card in cards:
        urls.append((f'{config.site_url}/cases/{card.slug}/', to_iso_date(card.date, now)))

    entries = '\n'.join(
        f'  <url>\n    <loc>{escape_xml(loc)}</loc>\n    <lastmod>{escape_xml(lastmod)}</lastmod>\n  </url>'
        for loc, lastmod in urls
    )
    return f'''<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
{entries}
</urlset>
'''


def render_rss(cards, config, now=None):
    """Generate the RSS feed with the most recent cases."""
    labels = _labels(config)
    items = []
    for card in cards[:FEED_SIZE]:
        link = f'{config.site_url}/cases/{card.slug}/'
        description = card.description or strip_markdown(card.body_markdown)
        items.append(f'''    <item>
      <title>{escape_xml(card.title)}</title>
      <link>{escape_xml(link)}</link>
      <guid>{escape_xml(link)}</guid>
      <pubDate>{to_rfc1123(card.date, now)}</pubDate>
      <description>{escape_xml(description)}</description>
    </item>''')
    items_xml = '\n'.join(items)

    return f'''<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>{escape_xml(labels["feed_title"].format(site=config.site_name))}</title>
    <link>{escape_xml(config.site_url + "/cases/")}</link>
    <description>{escape_xml(labels["feed_description"].format(site=config.site_name))}</description>
    <lastBuildDate>{to_rfc1123(None, now)}</lastBuildDate>
{items_xml}
  </channel>
</rss>
'''


def render_robots_txt(config):
    """Generate robots.txt with sitemap reference."""
    return f'''User-agent: *
Allow: /

Sitemap: {config.site_url}/sitemap.xml
'''


def render_legacy_json(cards):
    """Mirror the cards into the JSON file the client-side carousel reads."""
    legacy_cards = [
        {
            'slug': card.slug,
            'title': card.title,
            'date': card.date,
            'category': card.category,
            'description': card.description,
            'challenge': card.challenge,
            'approach': card.approach,
            'outcome': card.outcome,
            'image': card.image,
            'imageAlt': card.image_alt,
            'tags': list(card.tags),
            'delay': round(0.05 * position, 2),
        }
        for position, card in enumerate(cards, start=1)
    ]
    return json.dumps({'cards': legacy_cards}, ensure_ascii=False, indent=4) + '\n'
