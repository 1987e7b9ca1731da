#!/usr/bin/env python3
"""Run script for duewise."""

import uvicorn

from duewise.config import configure_logging

if __name__ == "__main__":
    configure_logging()
    uvicorn.run(
        "duewise.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
