"""Shared fixtures for the taxonomy test suite."""

import pytest

from expense_taxonomy.config import get_settings
from expense_taxonomy.taxonomy import build_hierarchy_lookup, ensure_default_hierarchy


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; make every test read the environment anew."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_rows():
    return [
        {"project": "日常开支", "category": "购物", "sub_category": "食品"},
        {"project": "日常开支", "category": "购物", "sub_category": "水果"},
        {"project": "日常开支", "category": "餐饮", "sub_category": "午餐"},
        {"project": "工作", "category": "差旅", "sub_category": "机票"},
    ]


@pytest.fixture
def finalized_rows(sample_rows):
    return ensure_default_hierarchy(sample_rows)


@pytest.fixture
def lookup(finalized_rows):
    return build_hierarchy_lookup(finalized_rows, strict=True)


@pytest.fixture
def members():
    return [
        {"id": 1, "name": "张三"},
        {"id": 2, "name": "妈妈"},
    ]
