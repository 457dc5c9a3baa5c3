import logging
from os import getenv

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 32


class ConfigError(Exception):
    pass


class Settings:
    """Configuration du process, lue une seule fois au démarrage.

    Chaque valeur vient de l'environnement; les kwargs permettent de la forcer (tests).
    """

    def __init__(self, **overrides):
        self.PORT = int(getenv("PORT", "3000"))
        self.APP_ENV = getenv("APP_ENV", "development")
        self.DATABASE_URL = getenv("DATABASE_URL", "")
        self.JWT_SECRET = getenv("JWT_SECRET", "")
        self.JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "10080"))  # 7 jours
        self.CORS_ORIGIN = getenv("CORS_ORIGIN", "http://localhost:5500")
        self.DB_POOL_SIZE = int(getenv("DB_POOL_SIZE", "20"))
        self.DB_MAX_OVERFLOW = int(getenv("DB_MAX_OVERFLOW", "0"))
        self.DB_POOL_TIMEOUT = float(getenv("DB_POOL_TIMEOUT", "2"))
        self.LOG_LEVEL = getenv("LOG_LEVEL", "INFO")

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise ConfigError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    def validate(self) -> None:
        missing = [key for key in ("JWT_SECRET", "DATABASE_URL") if not getattr(self, key)]
        if missing:
            raise ConfigError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        if len(self.JWT_SECRET) < MIN_SECRET_LENGTH:
            logger.warning(
                "JWT_SECRET should be at least %d characters (current length: %d)",
                MIN_SECRET_LENGTH,
                len(self.JWT_SECRET),
            )
