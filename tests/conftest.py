"""
Shared test configuration.

Django is configured here so settings-driven code and the ORM-backed store
can run without a project.
"""

import asyncio
import os
import tempfile

import django
import pytest
from django.conf import settings


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")
    if not settings.configured:
        db_dir = tempfile.mkdtemp(prefix="rail_mutations_")
        settings.configure(
            DEBUG=False,
            USE_TZ=True,
            SECRET_KEY="rail-mutations-tests",
            INSTALLED_APPS=[
                "django.contrib.contenttypes",
                "django.contrib.auth",
            ],
            DATABASES={
                "default": {
                    "ENGINE": "django.db.backends.sqlite3",
                    "NAME": os.path.join(db_dir, "tests.sqlite3"),
                }
            },
            RAIL_MUTATIONS={},
        )
        django.setup()


@pytest.fixture
def run():
    """Run a coroutine to completion."""
    return asyncio.run


@pytest.fixture
def todo_type():
    from rail_mutations.core.descriptors import FieldSpec, TypeDescriptor

    return TypeDescriptor(
        "Todo",
        fields=(
            FieldSpec("title", "String", required=True),
            FieldSpec("done", "Boolean"),
        ),
    )


@pytest.fixture
def memory_store():
    from rail_mutations.storage import InMemoryStore

    return InMemoryStore()
