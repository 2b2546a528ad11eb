import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .db.base import Base
from .db.session import sessionmanager
from .routers import folders, health

logging.basicConfig(
    stream=sys.stdout, level=logging.DEBUG if settings.debug_logs else logging.INFO
)

origins = [
    "https://localhost:3000",
    "http://localhost:3000",
    "http://localhost:5173",
    settings.API_ORIGIN,
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with sessionmanager.connect() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await sessionmanager.close()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(folders.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"message": "Hello World"}
