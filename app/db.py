from motor.motor_asyncio import AsyncIOMotorClient
from fastapi import Request
from pymongo import ASCENDING, DESCENDING

DB_NAME = "ee_tools"

# Saved calculator runs, one document per save
TOOL_RECORDS = "tool_records"


def connect_to_mongo(app, mongo_url: str):
    app.state.mongo_client = AsyncIOMotorClient(mongo_url)


def close_mongo_connection(app):
    client = getattr(app.state, "mongo_client", None)
    if client:
        client.close()


async def ensure_indexes(app):
    """History is always read per user, newest first."""
    db = app.state.mongo_client[getattr(app.state, "db_name", DB_NAME)]
    await db[TOOL_RECORDS].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])


def get_db(request: Request):
    client = getattr(request.app.state, "mongo_client", None)
    if client is None:
        raise RuntimeError("MongoDB not connected")
    db_name = getattr(request.app.state, "db_name", DB_NAME)
    return client[db_name]
