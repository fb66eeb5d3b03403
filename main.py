import logging

import uvicorn

from timemark.config import config


def main() -> None:
    # Configure logging for the entire application
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s:     %(name)s - %(message)s",
    )

    # Set log level for our app modules
    logging.getLogger("timemark").setLevel(logging.INFO)

    uvicorn.run(
        "timemark.web.server:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
