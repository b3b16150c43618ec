#!/usr/bin/env python3
# backend/run.py
"""
Development server runner for the facility booking API.
For local development only.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("ENVIRONMENT", "development")

import uvicorn

from facility_booking.core.config import settings

if __name__ == "__main__":
    print(f"🚀 Starting facility booking API ({settings.environment})...")
    print(f"📊 Database: {settings.get_database_url()}")
    print("🌐 Access at: http://localhost:8000")
    print("📚 API Docs: http://localhost:8000/docs")

    uvicorn.run(
        "facility_booking.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info"
    )
