#!/usr/bin/env python3
"""
Run script for the Sales Coach recording pipeline
"""
import uvicorn

from salescoach.config.settings import settings

if __name__ == "__main__":
    uvicorn.run(
        "salescoach.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
