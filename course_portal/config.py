import os
from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables
load_dotenv()

DEFAULT_MONGODB_URI = "mongodb://localhost:27017/course_portal"
DEFAULT_DATABASE_NAME = "course_portal"

SESSION_COOKIE_NAME = "portal_session"
SESSION_TTL_SECONDS = 60 * 60 * 24


class Settings(BaseModel):
    port: int = 3000
    mongodb_uri: str = DEFAULT_MONGODB_URI
    session_secret: str = "secret-key"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from PORT, MONGODB_URI and SESSION_SECRET."""
        return cls(
            port=int(os.getenv("PORT", "3000")),
            mongodb_uri=os.getenv("MONGODB_URI", DEFAULT_MONGODB_URI),
            session_secret=os.getenv("SESSION_SECRET", "secret-key"),
        )
