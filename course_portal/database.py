import logging

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from course_portal.config import DEFAULT_DATABASE_NAME, Settings
from course_portal.models.course import CourseCatalog
from course_portal.store import StudentStore

logger = logging.getLogger(__name__)

SERVER_SELECTION_TIMEOUT_MS = 5000


async def connect(settings: Settings):
    """Open the MongoDB client and check the server answers.

    Returns ``(client, store)``. A failed ping is fatal: it is logged and the
    process exits, since nothing in the app works without the database.
    """
    client = AsyncIOMotorClient(settings.mongodb_uri, serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS)
    try:
        await client.admin.command("ping")
    except PyMongoError as exc:
        logger.error(f"MongoDB connection error: {exc}")
        client.close()
        raise SystemExit(1)

    db = client.get_default_database(DEFAULT_DATABASE_NAME)
    logger.info(f"Connected to MongoDB database '{db.name}'")
    return client, StudentStore(db["students"])


# Dependencies to get the injected store and catalog
def get_store(request: Request) -> StudentStore:
    return request.app.state.store


def get_catalog(request: Request) -> CourseCatalog:
    return request.app.state.catalog
