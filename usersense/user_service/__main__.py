"""Run the user service: ``python -m usersense.user_service`` or ``usersense-users``."""

import uvicorn

from ..core.config import UserServiceConfig
from ..utils.logger import configure_logging
from .app import create_app


def main(host: str = "0.0.0.0") -> None:
    config = UserServiceConfig.from_env()
    configure_logging(config.log_level)
    uvicorn.run(create_app(config), host=host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
