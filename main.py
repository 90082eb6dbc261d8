"""
Main entrypoint: run the Solscope API with uvicorn.

Env: API_HOST (default 0.0.0.0), API_PORT (default 8000), HELIUS_API_KEY, XAI_API_KEY, LOG_LEVEL.

Equivalent: uvicorn backend_solscope.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os

from backend_solscope.config.env import load_solscope_env
from backend_solscope.solscope_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Run the FastAPI server in the main thread."""
    import uvicorn

    load_solscope_env()
    api_host = os.getenv("API_HOST", "0.0.0.0").strip()
    api_port = int(os.getenv("API_PORT", "8000").strip() or "8000")
    logger.info("main_api_starting", host=api_host, port=api_port)
    uvicorn.run(
        "backend_solscope.api_server.app:app",
        host=api_host,
        port=api_port,
        log_level=os.getenv("LOG_LEVEL", "info").strip().lower() or "info",
    )


if __name__ == "__main__":
    main()
