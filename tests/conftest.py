"""
Pytest configuration and shared fixtures.

Async runners are driven with `asyncio.run`; page fixtures live in `tests/pages.py`.
"""
import json

import pytest


@pytest.fixture
def write_json(tmp_path):
    """Write a JSON body to a file under tmp_path and return its path."""
    def _write(name: str, body: dict) -> str:
        path = tmp_path / name
        path.write_text(json.dumps(body), encoding="utf-8")
        return str(path)

    return _write
