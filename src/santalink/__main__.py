"""Run the Santalink service: python -m santalink"""

import uvicorn

from santalink.config import load_config

config = load_config()
uvicorn.run("santalink.app:create_app", host=config.host, port=config.port, factory=True)
