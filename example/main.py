import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from openapi_enrich import OpenApiValidation
from example import validators
from example.api.health import router as health_router
from example.api.root import router as root_router
from example.api.todos import router as todos_router
from example.api.validation import router as validation_router
from example.core.config import settings
from example.db.base import Base
from example.db.session import engine

logging.basicConfig(level=settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(_: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Todo API", version="1.0.0", lifespan=lifespan)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(root_router)
app.include_router(health_router)
app.include_router(todos_router)
app.include_router(validation_router)

validation = validators.register(OpenApiValidation())
validation.install(app)
