"""
Shared pytest fixtures for padel draw engine tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
from datetime import datetime, timedelta

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from padel.models import Couple


BASE_TIME = datetime(2026, 3, 1, 9, 0, 0)


def make_couple(index, seed=None, registered_at=None, **kwargs):
    """Couple C<index> with players P<index>a / P<index>b registered one minute apart."""
    if registered_at is None:
        registered_at = BASE_TIME + timedelta(minutes=index)
    return Couple(
        id=f"C{index}",
        player1_id=f"P{index}a",
        player2_id=f"P{index}b",
        seed=seed,
        registered_at=registered_at,
        **kwargs,
    )


def make_seeded(count):
    """Couples already in seed order: C1 is seed 1."""
    return [make_couple(i, seed=i) for i in range(1, count + 1)]


@pytest.fixture
def couple_factory():
    return make_couple


@pytest.fixture
def seeded_couples():
    """Factory for ``n`` couples in seed order."""
    return make_seeded


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app at a temporary data directory."""
    import app as app_module

    tournaments_dir = tmp_path / "tournaments"
    tournaments_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setattr(app_module, 'TOURNAMENTS_DIR', str(tournaments_dir))
    return tmp_path


@pytest.fixture
def client(temp_data_dir):
    """Test client logged in as the club organizer."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        with client.session_transaction() as sess:
            sess['user'] = 'club-admin'
            sess['role'] = 'club'
        yield client


@pytest.fixture
def guest_client(temp_data_dir):
    """Test client with no session."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
