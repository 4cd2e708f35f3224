#!/usr/bin/env python3
"""Run script for the DMS API server."""

import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "dms.api.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "True").lower() == "true",
    )
