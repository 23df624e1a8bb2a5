from functools import lru_cache

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from config import get_settings


@lru_cache()
def get_client() -> AsyncIOMotorClient:
    settings = get_settings()
    return AsyncIOMotorClient(settings.mongo_url)


def get_database() -> AsyncIOMotorDatabase:
    """
    FastAPI dependency that returns the Mongo database handle.

    The handle is passed explicitly into stores and services; nothing
    below the router layer imports it directly.
    """
    return get_client()[get_settings().db_name]
