"""Test configuration."""
import os
from pathlib import Path
from typing import List

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parents[3] / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from fluentsync.models.progress_models import WordOfDay
from fluentsync.services.reload_signal import CallbackReloadNotifier
from fluentsync.services.shared_store import InMemorySharedStore, SqlSharedStore

fake = Faker()


class RecordingNotifier(CallbackReloadNotifier):
    """Notifier that remembers every scope it was asked to reload."""

    def __init__(self):
        self.scopes: List[str] = []
        super().__init__(self.scopes.append)


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path: Path):
    """Run a test against both store adapters."""
    if request.param == "memory":
        yield InMemorySharedStore()
        return

    sql = SqlSharedStore("group.com.fluentry.test", tmp_path)
    try:
        yield sql
    finally:
        sql.close()


@pytest.fixture
def notifier() -> RecordingNotifier:
    """Create a notifier that records reload scopes."""
    return RecordingNotifier()


@pytest.fixture
def random_word() -> WordOfDay:
    """Create a word of the day with fake content."""
    return WordOfDay(
        word=fake.word().capitalize(),
        definition=fake.sentence(),
        example=fake.sentence(),
        pronunciation=f"/{fake.word()}/",
    )
