"""
RUN SCRIPT - Start the gateway server
=====================================

PURPOSE:
  Single entry point to start the gateway.

WHAT IT DOES:
  - Imports the FastAPI app from gateway.main (which reads Settings once).
  - Runs it with uvicorn on HOST/PORT from the environment (default 0.0.0.0:3000).

USAGE:
  python run.py

  API docs: http://localhost:3000/docs

NOTE:
  Set OPENAI_API_KEY (and optionally TAVILY_API_KEY for /image/search) in .env first.
"""

import uvicorn

from gateway.main import app


def main():
    settings = app.state.settings
    uvicorn.run(
        app,                  # The app object itself, so settings are not read twice.
        host=settings.host,   # 0.0.0.0 listens on all interfaces.
        port=settings.port,
    )


# Only run uvicorn when this file is executed directly (python run.py).
if __name__ == "__main__":
    main()
