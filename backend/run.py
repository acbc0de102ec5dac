#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Serves the API from a local SQLite file unless DATABASE_URL says otherwise.
"""
import os
from pathlib import Path

backend_dir = Path(__file__).parent
os.chdir(backend_dir)

os.environ.setdefault("DATABASE_URL", "sqlite:///./mentorbook.db")

import uvicorn  # noqa: E402

if __name__ == "__main__":
    print("Starting mentorbook development server")
    print("Access at: http://localhost:8000")
    print("API Docs: http://localhost:8000/docs")

    uvicorn.run("mentorbook.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
