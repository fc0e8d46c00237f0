import logging
import os

from dotenv import load_dotenv


class Config:
    def __init__(self, env_file=None):
        """
        Initialize configuration by loading environment variables and setting default attributes.

        Loads environment variables from the provided .env file path when `env_file` is given; otherwise loads from the default environment. Command line flags override these values.
        Parameters:
            env_file (str | None): Optional path to a .env file to load environment variables from.
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        # Logging configuration
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        self.LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

        # Feed fetching
        self.FEED_USER_AGENT = os.getenv("FEED_USER_AGENT", "PodcastHistory/1.0")

        # Directory for scratch copies of player databases (None = system temp dir)
        self.STATE_STORE_TEMP_DIR = os.getenv("STATE_STORE_TEMP_DIR") or None
        if self.STATE_STORE_TEMP_DIR and not os.path.isdir(self.STATE_STORE_TEMP_DIR):
            raise ValueError(
                f"STATE_STORE_TEMP_DIR must be an existing directory, got: {self.STATE_STORE_TEMP_DIR}"
            )

    def log_level(self, override=None) -> int:
        '''Resolve a log level name to its logging constant, defaulting to INFO.'''
        name = (override or self.LOG_LEVEL).upper()
        level = logging.getLevelName(name)
        return level if isinstance(level, int) else logging.INFO
