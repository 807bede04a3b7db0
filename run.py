#!/usr/bin/env python3
"""
Simple run script for the CanvasFlow API.

Usage:
    python run.py
    
Or with custom settings:
    HOST=127.0.0.1 PORT=8080 STEP_DELAY_SECONDS=0.2 python run.py
"""

import uvicorn

from canvasflow.config import settings


def main():
    """Run the FastAPI application."""
    print(f"""
CanvasFlow {settings.APP_VERSION} - workflow execution engine

  Server:    http://{settings.HOST}:{settings.PORT}
  API Docs:  http://{settings.HOST}:{settings.PORT}/docs
  Step delay: {settings.STEP_DELAY_SECONDS}s, step budget: {settings.MAX_STEPS}
    """)
    
    uvicorn.run(
        "canvasflow.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
