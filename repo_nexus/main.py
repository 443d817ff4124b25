import logging
import sys

import uvicorn

from repo_nexus import config

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


def main():
    if not config.GITHUB_TOKEN:
        logger.warning("GITHUB_TOKEN is not set; GitHub requests will be unauthenticated and heavily rate limited.")
    if not config.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set; AI endpoints will be unavailable.")

    logger.info(f"Starting NEXUS on {config.HOST}:{config.PORT} (env={config.APP_ENV}).")

    uvicorn.run(
        "repo_nexus.api.app:app",
        host=config.HOST,
        port=config.PORT,
        log_level=config.LOG_LEVEL.lower(),
    )

if __name__ == "__main__":
    main()
