import uvicorn

from cookie_consent.config import settings
from cookie_consent.main import app

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000, reload=settings.debug)
