"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import exports  # noqa: E402


# Create app
app = FastAPI(
    title="Student ID Card API",
    description="API for exporting print-ready student ID card sheets",
    version="0.1.0",
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Skipped-Count", "X-Page-Count"],
)

# Include routers
app.include_router(exports.router, prefix="/exports", tags=["exports"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Student ID Card API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
