import logging
import sys

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1;31m",
}
RESET = "\033[0m"


class ColorFormatter(logging.Formatter):
    def format(self, record):
        color = LEVEL_COLORS.get(record.levelname.replace(RESET, ""), "")
        record.levelname = f"{color}{record.levelname}{RESET}"
        return super().format(record)


def setup_logging(level: int = logging.INFO):
    """
    Install a single coloured stdout handler, replacing whatever
    Uvicorn or Streamlit configured before us.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    LOG_FORMAT = (
        "%(asctime)s.%(msecs)03d | %(levelname)-8s | "
        "%(name)s | %(module)s.%(funcName)s:%(lineno)d | %(message)s"
    )
    DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColorFormatter(LOG_FORMAT, DATE_FORMAT))

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,  # uvicorn installs its own handlers first
    )

    noisy = [
        "uvicorn", "uvicorn.access",
        "httpx",
        "httpcore",
        "openai",
        "langchain",
        "langchain_core",
        "asyncio",
    ]
    for name in noisy:
        logging.getLogger(name).setLevel(logging.WARNING)
