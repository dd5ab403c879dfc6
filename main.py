"""
Conversion Killer Check - Main Application

A FastAPI service that fetches a landing page, detects "conversion killers"
(UX and marketing defects) with heuristic rules, PageSpeed Insights scores
or Claude, and reports the most important ones.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from config import settings
from core.cache import close_redis_client
from core.exceptions import InvalidURLError
from api.routes import router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Release the Redis connection pool on shutdown
    close_redis_client()


# Initialize FastAPI app
app = FastAPI(title="Conversion Killer Check", lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """A missing or non-string url field is an invalid URL, not a 422."""
    return JSONResponse(status_code=400, content={"message": InvalidURLError.user_message})


# Include all routes from api/routes.py
app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, timeout_keep_alive=60)
