"""Run the stand-up bot: python -m standup_bot"""
import uvicorn

from .app import app
from .config import config

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=config.PORT, log_level=config.LOG_LEVEL.lower())
