"""
Main entrypoint: AlphIQ dashboard API server.

Loads .env, reports configuration gaps, then serves the FastAPI app with
uvicorn in the main thread. On SIGINT/SIGTERM the server shuts down and the
process exits.

Env: API_HOST, API_PORT, LOG_LEVEL, DATABASE_URL, REDIS_URL, AIML_API_KEY, etc.

Equivalent: uvicorn alphiq_backend.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os

# Configure structured JSON logging before other imports that may log
from alphiq_backend.alphiq_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Run the FastAPI server in the main thread."""
    from alphiq_backend.config import env

    env.load_alphiq_env()
    api_host = env.get_str("API_HOST", "0.0.0.0")
    api_port = env.get_int("API_PORT", 8000)

    from alphiq_backend.api_server.app import app
    import uvicorn

    logger.info("main_server_starting", host=api_host, port=api_port)
    uvicorn.run(app, host=api_host, port=api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
