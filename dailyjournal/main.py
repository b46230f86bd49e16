from __future__ import annotations

import os

import uvicorn

from dailyjournal.app.main import app


def run() -> None:
    """Run the DailyJournal FastAPI application with environment-aware port."""

    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "127.0.0.1")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
