import os


def _optional_int(name: str):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return int(raw)


class Config:
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Pin the assignment jitter when set (reproducible plans for dry runs)
    ASSIGNMENT_SEED = _optional_int("ASSIGNMENT_SEED")

    DEFAULT_JUDGES_PER_PROJECT = int(os.getenv("DEFAULT_JUDGES_PER_PROJECT", "3"))

    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
