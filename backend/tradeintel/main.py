"""
Main FastAPI application entry point.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from tradeintel.api import uploads
from tradeintel.db.database import engine, Base
from tradeintel import models  # noqa: F401  registers tables on Base.metadata

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Export Trade Intelligence",
    description="Customs export data import for competitor and client tracking",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # React dev servers
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

# Include routers
app.include_router(uploads.router, prefix="/api/upload", tags=["upload"])


@app.get("/")
async def root():
    return {"message": "Export Trade Intelligence API"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
