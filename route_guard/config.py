
import os
from functools import lru_cache

class Settings:
    LOG_LEVEL: str = os.getenv("ROUTE_GUARD_LOG_LEVEL", "INFO")
    # empty means console logging only
    LOG_FILE: str = os.getenv("ROUTE_GUARD_LOG_FILE", "")
    # background execution never prompts the wallet owner
    EXECUTE_IN_BACKGROUND: bool = bool(int(os.getenv("ROUTE_GUARD_EXECUTE_IN_BACKGROUND", "0")))
    # 0 disables the prometheus exporter
    METRICS_PORT: int = int(os.getenv("ROUTE_GUARD_METRICS_PORT", "0"))

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
