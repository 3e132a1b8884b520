import os


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/rooms_booking.db")

# "sql" keeps everything in DATABASE_URL, "memory" keeps it in process
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sql").lower()

# JWT configuration
SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Admin self-registration is refused unless this is set
ADMIN_SIGNUP_CODE = os.getenv("ADMIN_SIGNUP_CODE")

SEED_DEFAULT_ROOMS = os.getenv("SEED_DEFAULT_ROOMS", "true").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
