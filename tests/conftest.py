import sys
from pathlib import Path

import pytest

# Ensure the `bizdir` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bizdir.core.config import Settings  # noqa: E402


class FakeStore:
    """In-memory stand-in for PostgresBusinessStore."""

    def __init__(self, businesses=None, categories=None):
        self.businesses = list(businesses or [])
        self.categories = list(categories or [])
        self.created = []

    def find_business_by_name_and_address(self, name, address_fragment):
        for business in self.businesses:
            if business["name"].lower() == name.lower() and address_fragment.lower() in (business.get("address") or "").lower():
                return business
        return None

    def find_businesses_with_website(self):
        return [b for b in self.businesses if b.get("website") is not None]

    def find_businesses_with_phone(self):
        return [b for b in self.businesses if b.get("phone") is not None]

    def find_business_by_name(self, name):
        for business in self.businesses:
            if business["name"].lower() == name.lower():
                return business
        return None

    def find_first_category_alphabetically(self):
        if not self.categories:
            return None
        return sorted(self.categories, key=lambda c: c["name"])[0]

    def create_business(self, record):
        stored = {"id": f"biz-{len(self.businesses) + 1}", **record}
        self.businesses.append(stored)
        self.created.append(stored)
        return stored


@pytest.fixture
def store():
    return FakeStore(
        categories=[
            {"id": "cat-retail", "name": "Retail"},
            {"id": "cat-restaurant", "name": "Restaurants"},
        ]
    )


@pytest.fixture
def empty_store():
    return FakeStore()


@pytest.fixture
def settings():
    return Settings(
        database_url="postgres://test",
        llm_api_key="test-key",
        inter_url_delay_seconds=0,
    )
