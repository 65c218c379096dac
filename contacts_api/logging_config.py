import logging


def setup_logging(level: str = "INFO") -> None:
    """
    Налаштовує кореневий логер один раз.

    Повторні виклики (наприклад, у тестах) нічого не змінюють, якщо
    обробники вже додані.

    :param level: Назва рівня логування, наприклад ``"DEBUG"`` або ``"INFO"``.
    """
    logger = logging.getLogger()
    if logger.handlers:
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
