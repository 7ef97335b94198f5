import logging

LOG_FORMAT = '%(asctime)s - %(module)-15s - %(levelname)s - %(message)s'


class SingleLineFormatter(logging.Formatter):
    """
    Keeps each record on one visual block: continuation lines of a multi-line
    message are indented to align with the start of the message.
    """

    def format(self, record):
        original_message = super().format(record)

        # asctime + " - " + 15-wide module + " - " + levelname + " - "
        initial_indent = ' ' * (len(self.formatTime(record)) + 3 + 15 + 3 + len(record.levelname) + 3)

        return original_message.replace('\n', f'\n{initial_indent}')


def setup_logging(level="INFO"):
    """
    Route log output to the console with single-line formatting.

    Replaces any console handler installed by a previous call, so repeated
    calls do not duplicate output.

    Args:
        level (str | int): Logging level name or number for the root logger.
    """
    logger = logging.getLogger()
    logger.setLevel(level if isinstance(level, int) else level.upper())

    for handler in list(logger.handlers):
        if isinstance(handler.formatter, SingleLineFormatter):
            logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(SingleLineFormatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    return logger
