"""Run the AI service: ``python -m usersense.ai_service`` or ``usersense-ai``."""

import uvicorn

from ..core.config import ProviderConfig
from ..utils.logger import configure_logging
from .app import create_app


def main(host: str = "0.0.0.0") -> None:
    config = ProviderConfig.from_env()
    configure_logging(config.log_level)
    uvicorn.run(create_app(config), host=host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
