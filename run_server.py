#!/usr/bin/env python3
"""
Simple script to run the server
Just run: python3 run_server.py
"""
import os

import uvicorn

from exam_backend.core.database import init_db

HOST = os.getenv("EXAM_HOST", "0.0.0.0")
PORT = int(os.getenv("EXAM_PORT", "8000"))


if __name__ == "__main__":
    init_db()

    print("=" * 50)
    print("Starting Exam Backend Server...")
    print("=" * 50)
    print(f"Server will be available at: http://localhost:{PORT}")
    print(f"API docs available at: http://localhost:{PORT}/docs")
    print("=" * 50)
    print("Press CTRL+C to stop the server")
    print("=" * 50)

    uvicorn.run("exam_backend.main:app", host=HOST, port=PORT, log_level="info")
