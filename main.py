"""
This file is used to run the application from the root directory.
It builds the FastAPI app through the factory in the course_portal package.
"""
import uvicorn
from course_portal.config import Settings

if __name__ == "__main__":
    settings = Settings.from_env()
    uvicorn.run("course_portal.main:create_app", factory=True, host="0.0.0.0", port=settings.port)
