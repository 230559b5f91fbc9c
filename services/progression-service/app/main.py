"""Progression Service API - FastAPI with DynamoDB player state"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.routers import progression_router
from app.services.store_registry import get_registry

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Progression Service API",
    description="Player progression and resource economy: energy, hunger, XP, reputation, streaks and shop",
    version=settings.VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

app.include_router(progression_router.router)

app.add_middleware(CORSMiddleware, allow_origins=settings.CORS_ORIGINS, allow_credentials=True, allow_methods=["*"], allow_headers=["*"])


@app.get("/")
async def root():
    return {"service": "progression-service", "status": "running", "version": settings.VERSION}


@app.get("/health")
def health():
    try:
        table = get_registry().repository.table
        table.meta.client.describe_table(TableName=settings.DYNAMODB_PLAYER_STATE_TABLE)
        return {"status": "healthy", "dynamodb": "connected"}
    except Exception as e:
        logger.warning(f"Health check DynamoDB connection failed: {str(e)}")
        # ALB health checks must pass while DynamoDB is unavailable
        return {"status": "healthy", "dynamodb": "unavailable", "warning": str(e)[:100]}
