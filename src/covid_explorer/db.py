"""MongoDB helpers.

Centralizes creation of Mongo clients for materializing result sets.
"""

from __future__ import annotations

from typing import Any
from pymongo import MongoClient
from pymongo.database import Database

import certifi


def get_client(uri: str) -> MongoClient:
    """Return a configured PyMongo MongoClient for the provided URI.

    TLS (with the certifi CA bundle) is enabled for `mongodb+srv://` URIs,
    which is what hosted clusters hand out; plain local URIs connect without it.

    Args:
        uri: MongoDB connection URI.

    Returns:
        Configured MongoClient instance.
    """
    tls_opts: dict[str, Any] = {}
    if uri.startswith("mongodb+srv://"):
        tls_opts = {"tls": True, "tlsCAFile": certifi.where()}

    return MongoClient(
        uri,
        serverSelectionTimeoutMS=30000,
        socketTimeoutMS=30000,
        connectTimeoutMS=30000,
        **tls_opts,
    )


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient."""
    return client[db_name]
