import sys

import uvicorn

from core.config import settings
from core.logger import setup_logging, logger


def main():
    # Setup structured logging
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

    # For scaling run 'uvicorn api.main:app' directly, this is the single-node entry point
    reload = "--reload" in sys.argv
    logger.info("Starting CPNS Quiz API", host=settings.HOST, port=settings.PORT, env=settings.ENV)
    uvicorn.run(
        "api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
