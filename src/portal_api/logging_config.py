import logging

LOG_FORMAT = "%(asctime)s - %(name)s - [%(levelname)s] - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# SDK loggers that are chatty at INFO
QUIET_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")


def configure_logging(level: str = "INFO") -> None:
    """Set the root log format and level and quiet the AWS SDK loggers."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    logging.getLogger().setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
