"""Remote database engine and local Redis connection management"""
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from redis import asyncio as aioredis

from scholarlink.config import DATABASE_URL, REDIS_URL

# A single device issues few concurrent requests, so the pool stays small
# pool_recycle=3600: Recycle connections every hour to prevent stale connections
engine = create_async_engine(
    DATABASE_URL,
    echo=False,  # Set to True for SQL query logging during development
    pool_size=5,
    max_overflow=5,
    pool_recycle=3600,
    pool_pre_ping=True,  # Verify connection health before using
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for declarative models
Base = declarative_base()

# Redis client (initialized on app startup)
redis_client: aioredis.Redis = None


async def init_redis() -> aioredis.Redis:
    """Initialize Redis connection with async client"""
    global redis_client
    redis_client = await aioredis.from_url(
        REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        max_connections=10,
    )
    return redis_client


async def close_redis():
    """Close Redis connection"""
    global redis_client
    if redis_client:
        await redis_client.close()
        redis_client = None

