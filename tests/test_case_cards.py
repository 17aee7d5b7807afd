import json
from datetime import datetime, timezone

import pytest

from case_cards import (
    Card,
    SiteConfig,
    format_date,
    load_cards_from_json,
    load_cards_from_markdown,
    load_config,
    normalize_card,
    normalize_cards,
    parse_date,
)
from case_errors import ConfigError, EmptyContentError, ValidationError


# Site config

def test_missing_config_uses_defaults(tmp_path):
    assert load_config(tmp_path / 'site.config.json') == SiteConfig()


def test_malformed_config_uses_defaults(tmp_path):
    path = tmp_path / 'site.config.json'
    path.write_text('{not json', encoding='utf-8')
    assert load_config(path) == SiteConfig()

    path.write_text('["a list"]', encoding='utf-8')
    assert load_config(path) == SiteConfig()


def test_config_values_and_trailing_slash(tmp_path):
    path = tmp_path / 'site.config.json'
    path.write_text(json.dumps({'siteName': 'Acme', 'siteUrl': 'https://acme.test///', 'language': 'ko'}), encoding='utf-8')
    config = load_config(path)
    assert config.site_name == 'Acme'
    assert config.site_url == 'https://acme.test'
    assert config.language == 'ko'


def test_config_bad_fields_fall_back_individually(tmp_path):
    path = tmp_path / 'site.config.json'
    path.write_text(json.dumps({'siteName': 42, 'siteUrl': 'https://acme.test', 'language': 'fr'}), encoding='utf-8')
    config = load_config(path)
    assert config.site_name == SiteConfig().site_name
    assert config.site_url == 'https://acme.test'
    assert config.language == 'en'


# Dates

def test_parse_date_formats():
    utc = timezone.utc
    assert parse_date('2024-06-01') == datetime(2024, 6, 1, tzinfo=utc)
    assert parse_date('2024-06-01T09:30:00+09:00') == datetime(2024, 6, 1, 0, 30, tzinfo=utc)
    assert parse_date('2024-06-01T10:00:00Z') == datetime(2024, 6, 1, 10, 0, tzinfo=utc)
    assert parse_date('2024-06-01 08:15:00') == datetime(2024, 6, 1, 8, 15, tzinfo=utc)
    assert parse_date('2024/06/01') == datetime(2024, 6, 1, tzinfo=utc)


def test_parse_date_rejects_garbage():
    assert parse_date('soon') is None
    assert parse_date('') is None
    assert parse_date(None) is None
    assert parse_date('2024-13-45') is None


def test_format_date():
    assert format_date('2024-01-05') == 'January 5, 2024'
    assert format_date('2024-01-05', 'ko') == '2024. 01. 05.'
    assert format_date('nope') == 'Date TBD'
    assert format_date('', 'ko') == '날짜 미정'


# Loading markdown

def test_load_skips_readme_and_underscore_files(tmp_path, write_case):
    write_case('b.md', {'title': 'B'})
    write_case('a.md', {'title': 'A'}, body='Body of A')
    write_case('README.md', {'title': 'readme'})
    write_case('_draft.md', {'title': 'draft'})
    (tmp_path / 'cases-data' / 'notes.txt').write_text('ignored', encoding='utf-8')

    entries = load_cards_from_markdown(tmp_path / 'cases-data')
    assert [fallback for _, fallback in entries] == ['a', 'b']
    record, _ = entries[0]
    assert record['title'] == 'A'
    assert record['bodyMarkdown'] == 'Body of A'


def test_load_missing_directory(tmp_path):
    with pytest.raises(ConfigError):
        load_cards_from_markdown(tmp_path / 'nope')


def test_load_empty_directory(tmp_path):
    (tmp_path / 'cases-data').mkdir()
    (tmp_path / 'cases-data' / 'README.md').write_text('# Cases', encoding='utf-8')
    with pytest.raises(EmptyContentError):
        load_cards_from_markdown(tmp_path / 'cases-data')


def test_malformed_frontmatter_becomes_body(tmp_path):
    content_dir = tmp_path / 'cases-data'
    content_dir.mkdir()
    (content_dir / 'broken.md').write_text('---\ntitle: never closed\n', encoding='utf-8')
    [(record, fallback)] = load_cards_from_markdown(content_dir)
    assert fallback == 'broken'
    assert 'title' not in record
    assert record['bodyMarkdown'] == '---\ntitle: never closed'


# Loading legacy JSON

def test_load_legacy_json(tmp_path):
    path = tmp_path / 'cards.json'
    path.write_text(json.dumps({'cards': [{'slug': 'one'}, 'junk', {'title': 'two'}]}), encoding='utf-8')
    entries = load_cards_from_json(path)
    assert entries == [({'slug': 'one'}, None), ({'title': 'two'}, None)]


def test_load_legacy_json_errors(tmp_path):
    with pytest.raises(ConfigError):
        load_cards_from_json(tmp_path / 'missing.json')

    bad = tmp_path / 'bad.json'
    bad.write_text('{', encoding='utf-8')
    with pytest.raises(ConfigError):
        load_cards_from_json(bad)

    shape = tmp_path / 'shape.json'
    shape.write_text('{"items": []}', encoding='utf-8')
    with pytest.raises(ConfigError):
        load_cards_from_json(shape)

    empty = tmp_path / 'empty.json'
    empty.write_text('{"cards": []}', encoding='utf-8')
    with pytest.raises(EmptyContentError):
        load_cards_from_json(empty)


# Normalizing

def test_slug_resolution_order():
    assert normalize_card({'slug': ' explicit '}, 0, 'file').slug == 'explicit'
    assert normalize_card({}, 0, 'file').slug == 'file'
    assert normalize_card({}, 4).slug == 'case-5'


def test_blank_explicit_slug_is_rejected():
    with pytest.raises(ValidationError):
        normalize_card({'slug': '   '}, 0, 'file')


def test_slug_must_be_single_path_segment():
    with pytest.raises(ValidationError):
        normalize_card({'slug': '../escape'}, 0)
    with pytest.raises(ValidationError):
        normalize_card({'slug': '..'}, 0)


def test_slug_cannot_shadow_generated_files():
    with pytest.raises(ValidationError, match='reserved'):
        normalize_card({'slug': 'index.html'}, 0)
    with pytest.raises(ValidationError, match='reserved'):
        normalize_card({}, 0, 'feed.xml')


def test_fields_are_trimmed_and_defaulted():
    card = normalize_card({
        'title': '  Title  ',
        'description': ' desc ',
        'tags': [' a ', '', '  ', 'b'],
        'imageAlt': ' alt ',
        'bodyMarkdown': '\n\nbody\n',
    }, 0, 'x')
    assert card.title == 'Title'
    assert card.description == 'desc'
    assert card.category == 'uncategorized'
    assert card.tags == ('a', 'b')
    assert card.image_alt == 'alt'
    assert card.body_markdown == 'body'
    assert card.image == ''


def test_tags_from_string_and_other_types():
    assert normalize_card({'tags': 'ml, ops ,'}, 0).tags == ('ml', 'ops')
    assert normalize_card({'tags': 7}, 0).tags == ()
    assert normalize_card({'tags': []}, 0).tags == ()


def test_outcome_falls_back_to_result():
    assert normalize_card({'result': 'legacy'}, 0).outcome == 'legacy'
    assert normalize_card({'result': 'legacy', 'outcome': 'new'}, 0).outcome == 'new'


def test_default_category_is_configurable():
    assert normalize_card({}, 0, default_category='기타').category == '기타'
    assert normalize_card({'category': 'Ops'}, 0, default_category='기타').category == 'Ops'


def test_cards_are_immutable():
    card = Card(slug='a')
    with pytest.raises(Exception):
        card.slug = 'b'


def test_duplicate_slug_is_rejected():
    entries = [({'slug': 'demo'}, 'a'), ({}, 'demo')]
    with pytest.raises(ValidationError, match='duplicate slug: demo'):
        normalize_cards(entries)


def test_sort_newest_first_with_undated_last_in_encounter_order():
    entries = [
        ({'date': '2024-01-01'}, 'old'),
        ({}, 'undated'),
        ({'date': '2024-06-01'}, 'new'),
        ({'date': 'garbage'}, 'garbage'),
        ({'date': '2024-03-01'}, 'middle'),
    ]
    cards = normalize_cards(entries)
    assert [card.slug for card in cards] == ['new', 'middle', 'old', 'undated', 'garbage']


def test_sort_keeps_encounter_order_for_equal_dates():
    entries = [({'date': '2024-01-01'}, 'first'), ({'date': '2024-01-01'}, 'second')]
    assert [card.slug for card in normalize_cards(entries)] == ['first', 'second']
