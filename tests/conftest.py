# tests/conftest.py
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Insert the project root (one level up) at the front of sys.path
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(PROJECT_ROOT))

FROZEN_NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def frozen_now():
    return FROZEN_NOW


@pytest.fixture
def write_case(tmp_path):
    """Write a markdown case file into <tmp_path>/cases-data."""
    content_dir = tmp_path / 'cases-data'
    content_dir.mkdir(exist_ok=True)

    def _write(name, meta=None, body=''):
        lines = []
        if meta is not None:
            lines.append('---')
            for key, value in meta.items():
                if isinstance(value, list):
                    lines.append(f'{key}:')
                    lines.extend(f'  - {item}' for item in value)
                else:
                    lines.append(f'{key}: {value}')
            lines.append('---')
        lines.append(body)
        path = content_dir / name
        path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
        return path

    return _write
