import os
import logging
import uvicorn

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

if os.environ.get("DEBUG", "0") == "1":
    logging.getLogger("meeting_scribe").setLevel(logging.DEBUG)

from meeting_scribe.api import create_app
from meeting_scribe.config import get_config

config = get_config()
app = create_app(config)


def run():
    logger.info(f"Starting Meeting Scribe split server on {config.host}:{config.port}")
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    run()
