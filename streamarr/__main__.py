"""Run the API server: python -m streamarr"""

import uvicorn

from streamarr.config import get_config

if __name__ == "__main__":
    config = get_config()
    uvicorn.run("streamarr.api.app:app", host=config.api_host, port=config.api_port)
