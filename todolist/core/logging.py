"""Configuration du logging applicatif (format commun à tout le backend)."""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """A appeler une seule fois, au démarrage (create_app)."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("todolist").setLevel(level.upper())
