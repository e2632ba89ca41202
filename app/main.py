import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from app.db import connect_to_mongo, close_mongo_connection, ensure_indexes
from routes.tools import router as tools_router

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app = FastAPI(
    title="Express Entry Tools",
    docs_url="/api/v1/docs",
    redoc_url="/api/v1/redoc",
    openapi_url="/api/v1/openapi.json"
)

app.include_router(tools_router, prefix="/api/v1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    mongo_url = os.getenv("MONGO_URL", "mongodb://localhost:27017")
    app.state.db_name = os.getenv("DB_NAME", "ee_tools")
    connect_to_mongo(app, mongo_url)
    await ensure_indexes(app)


@app.on_event("shutdown")
async def shutdown_event():
    close_mongo_connection(app)


@app.get("/health")
async def health():
    return {"status": "ok"}
