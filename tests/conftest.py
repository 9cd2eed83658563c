"""Shared test fixtures and configuration for pytest."""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest

# Set test environment variables before importing app modules
os.environ["LOG_LEVEL"] = "ERROR"
os.environ.pop("USERS_FILE", None)

from config.settings import Settings
from mcp_server.user_server import create_server
from mcp_server.user_store import InMemoryUserStore, JsonFileUserStore
from models.data_models import User, UserProfile


# ==================== Sample Data Fixtures ====================


@pytest.fixture
def sample_profile() -> UserProfile:
    """Sample user profile for testing."""
    return UserProfile(
        name="Ada Lovelace",
        email="ada@example.com",
        address="12 St James's Square, London",
        phone="+44 20 7946 0000",
    )


@pytest.fixture
def sample_users() -> List[User]:
    """Two stored users with sequential ids."""
    return [
        User(
            id=1,
            name="Ada Lovelace",
            email="ada@example.com",
            address="12 St James's Square, London",
            phone="+44 20 7946 0000",
        ),
        User(
            id=2,
            name="Alan Turing",
            email="alan@example.com",
            address="Bletchley Park, Milton Keynes",
            phone="+44 1908 640404",
        ),
    ]


@pytest.fixture
def make_profile() -> Callable[..., UserProfile]:
    """Factory fixture for creating user profiles."""
    def _make(
        name: str = "Test User",
        email: str = "test@example.com",
        address: str = "1 Test Street",
        phone: str = "555-0100",
    ) -> UserProfile:
        return UserProfile(name=name, email=email, address=address, phone=phone)

    return _make


@pytest.fixture
def generated_profile_json() -> Dict[str, Any]:
    """Profile as a model would return it through sampling, extra keys included."""
    return {
        "name": "Grace Hopper",
        "email": "grace.hopper@example.com",
        "address": "1 Navy Way, Arlington, VA",
        "phone": "+1 703 555 0199",
        "age": 85,
    }


# ==================== Store Fixtures ====================


@pytest.fixture
def users_file(tmp_path: Path) -> Path:
    """Path of a users file that does not exist yet."""
    return tmp_path / "data" / "users.json"


@pytest.fixture
def populated_users_file(users_file: Path, sample_users: List[User]) -> Path:
    """Users file already holding the sample users."""
    users_file.parent.mkdir(parents=True, exist_ok=True)
    users_file.write_text(
        json.dumps([user.to_dict() for user in sample_users], indent=2), encoding="utf-8"
    )
    return users_file


@pytest.fixture
def json_store(users_file: Path) -> JsonFileUserStore:
    return JsonFileUserStore(users_file)


@pytest.fixture
def memory_store() -> InMemoryUserStore:
    return InMemoryUserStore()


# ==================== Server Fixtures ====================


@pytest.fixture
def test_settings(users_file: Path) -> Settings:
    """Settings isolated from the developer's .env file."""
    return Settings(_env_file=None, users_file=users_file, log_level="ERROR")


@pytest.fixture
def server_factory(test_settings: Settings):
    """Factory fixture building an MCP server around a given store."""
    def _make(store):
        return create_server(store, test_settings)

    return _make


# ==================== Environment Fixtures ====================


@pytest.fixture(autouse=True)
def test_env():
    """Ensure test environment variables are set for all tests."""
    original_env = os.environ.copy()

    os.environ.update({
        "LOG_LEVEL": "ERROR",  # Reduce noise in tests
    })
    os.environ.pop("USERS_FILE", None)

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def temp_env(monkeypatch):
    """Fixture for temporarily modifying environment variables."""
    def set_env(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setenv(key, value)

    return set_env
