"""
Entry point — start the mode selection API.

Usage:
    python -m modeswitch.main
    uvicorn modeswitch.api.app:app --host 127.0.0.1 --port 8766 --reload
"""

import uvicorn
from .config import config


def main():
    uvicorn.run(
        "modeswitch.api.app:app",
        host=config.api_host,
        port=config.api_port,
        reload=False,
        log_level=config.log_level,
    )


if __name__ == "__main__":
    main()
