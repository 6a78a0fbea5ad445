"""
Allow the API to be run as a module: python -m ziron
"""
import os

import uvicorn

from .config import get_settings

if __name__ == '__main__':
    settings = get_settings()
    port = int(os.getenv("ZIRON_PORT") or settings.port)
    host = os.getenv("ZIRON_HOST") or settings.host
    uvicorn.run("ziron.api.main:app", host=host, port=port, log_level=settings.log_level.lower())
