#!/usr/bin/env python3
"""
Development startup script for the Study Assistant API
"""
import uvicorn
from app.utils.config import settings

if __name__ == "__main__":
    print("Starting AI Study Assistant...")
    print(f"Server will run on: http://{settings.api_host}:{settings.api_port}")
    print(f"API Documentation: http://{settings.api_host}:{settings.api_port}/docs")
    print(f"Debug mode: {settings.debug}")
    print(f"Completion provider: {settings.completion_provider}")
    print(f"Completion model: {settings.completion_model}")
    print(f"Supabase configured: {settings.supabase_configured}")

    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
