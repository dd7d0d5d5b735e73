"""
Application context: every long-lived collaborator, built once per app.

create_app() builds an AppContext from the Flask config and stores it in
app.extensions["auth"]. Views and the bearer-token decorator reach it via
get_context(); nothing else holds module-level handles.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from models.credential_store import CredentialStore
from models.db_storage import DBStorage
from services.auth import AuthService
from utils.durations import parse_duration
from utils.security import CredentialHasher
from utils.tokens import TokenIssuer

EXTENSION_KEY = "auth"


@dataclass
class AppContext:
    storage: DBStorage
    store: CredentialStore
    hasher: CredentialHasher
    issuer: TokenIssuer
    auth_service: AuthService

    @classmethod
    def from_config(cls, config) -> "AppContext":
        storage = DBStorage(
            config["DATABASE_URL"],
            connect_timeout=config["DB_CONNECT_TIMEOUT"],
            statement_timeout_ms=config["DB_STATEMENT_TIMEOUT_MS"],
            pool_timeout=config["DB_POOL_TIMEOUT"],
            echo=config["DB_ECHO"],
        )
        store = CredentialStore(storage)
        hasher = CredentialHasher(
            time_cost=config["ARGON2_TIME_COST"],
            memory_cost=config["ARGON2_MEMORY_COST"],
            parallelism=config["ARGON2_PARALLELISM"],
        )
        issuer = TokenIssuer(
            access_secret=config["JWT_ACCESS_SECRET"],
            refresh_secret=config["JWT_REFRESH_SECRET"],
            access_ttl=parse_duration(config["JWT_ACCESS_EXPIRES_IN"]),
            refresh_ttl=parse_duration(config["JWT_REFRESH_EXPIRES_IN"]),
            algorithm=config["JWT_ALGORITHM"],
            issuer=config.get("JWT_ISSUER") or None,
        )
        return cls(
            storage=storage,
            store=store,
            hasher=hasher,
            issuer=issuer,
            auth_service=AuthService(store, issuer, hasher),
        )


def get_context() -> AppContext:
    return current_app.extensions[EXTENSION_KEY]
