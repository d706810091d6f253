from __future__ import annotations

import logging
from pathlib import Path

from raydium_sniper.config import Settings

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
NOISY_LOGGERS = ("httpx", "httpcore", "aiohttp", "asyncio", "urllib3")


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors trade events so they stand out."""

    GREY = "\x1b[90m"
    NEON_GREEN = "\x1b[92m"
    NEON_CYAN = "\x1b[96m"
    NEON_RED = "\x1b[91m"
    MAGENTA = "\x1b[95m"
    YELLOW = "\x1b[93m"
    RESET = "\x1b[0m"

    # First match wins
    KEYWORD_COLORS = (
        (("PASS", "BUY"), NEON_GREEN),
        (("NEW TOKEN",), NEON_CYAN),
        (("SELL", "TARGET"), MAGENTA),
        (("REJECT",), GREY),
    )

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(message)s", datefmt="%H:%M:%S")

    def color_for(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.ERROR:
            return self.NEON_RED
        if record.levelno >= logging.WARNING:
            return self.YELLOW

        msg = str(record.msg)
        for keywords, color in self.KEYWORD_COLORS:
            if any(k in msg for k in keywords):
                return color
        return self.GREY

    def format(self, record: logging.LogRecord) -> str:
        return f"{self.color_for(record)}{super().format(record)}{self.RESET}"


def setup_logging(settings: Settings) -> None:
    """Log to LOG_DIR/bot.log (plain) and to the console (colored)."""
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_dir / "bot.log", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ColoredFormatter())

    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL)
    root.handlers.clear()
    root.addHandler(file_handler)
    root.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
