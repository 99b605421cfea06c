#!/usr/bin/env python3
"""
Run the Dispatch Watch API (polls the CAD feed in the background).
Feed and engine settings come from the environment (or .env): CAD_FEED_URL,
POLL_INTERVAL_SECONDS, MAX_INCIDENTS, ...
"""
import os

from dotenv import load_dotenv

load_dotenv()

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=port,
        reload=os.environ.get("RELOAD", "0") == "1",
    )
