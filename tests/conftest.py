"""
tests/conftest.py -- Shared fixtures.

Each test gets its own app built by create_app("test") on a throwaway SQLite
file under tmp_path. A file (not ":memory:") is used so that threads in the
concurrency tests all see the same database.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from flask import Flask
from flask.testing import FlaskClient

from api import create_app
from api.context import AppContext, EXTENSION_KEY
from models.credential_store import CredentialStore
from services.auth import AuthService
from utils.tokens import TokenIssuer


@pytest.fixture()
def app(tmp_path) -> Generator[Flask, None, None]:
    app = create_app("test", overrides={"DATABASE_URL": f"sqlite:///{tmp_path / 'auth.db'}"})
    yield app
    app.extensions[EXTENSION_KEY].storage.dispose()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture()
def ctx(app: Flask) -> AppContext:
    return app.extensions[EXTENSION_KEY]


@pytest.fixture()
def store(ctx: AppContext) -> CredentialStore:
    return ctx.store


@pytest.fixture()
def issuer(ctx: AppContext) -> TokenIssuer:
    return ctx.issuer


@pytest.fixture()
def service(ctx: AppContext) -> AuthService:
    return ctx.auth_service
