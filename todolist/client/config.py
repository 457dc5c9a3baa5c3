from dataclasses import dataclass
from os import getenv


@dataclass
class ClientConfig:
    api_base_url: str = "http://localhost:3000"
    api_max_retries: int = 3
    api_retry_delay: float = 1.0  # secondes, doublé à chaque tentative
    toast_duration: float = 3.0
    token_storage_key: str = "authToken"
    user_storage_key: str = "currentUser"
    tasks_storage_key: str = "todoTasks"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        return cls(
            api_base_url=getenv("TODO_API_URL", cls.api_base_url),
            api_max_retries=int(getenv("TODO_API_MAX_RETRIES", str(cls.api_max_retries))),
            api_retry_delay=float(getenv("TODO_API_RETRY_DELAY", str(cls.api_retry_delay))),
        )
