import socket

import uvicorn

from mealplan.api.api_run import app
from mealplan.utilities.config import APP_HOST, APP_PORT, LOG_LEVEL
from mealplan.utilities.logging_config import configure_logging


def lan_address() -> str:
    """Address other devices on the network can reach; '127.0.0.1' if none is found."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # UDP connect sends nothing, it only makes the OS pick an interface
        probe.connect(("8.8.8.8", 80))
        return str(probe.getsockname()[0])
    except OSError:
        return "127.0.0.1"
    finally:
        probe.close()


if __name__ == "__main__":
    configure_logging(LOG_LEVEL)
    print(f"Meal planner running on http://localhost:{APP_PORT} (Press CTRL+C to quit)")
    address = lan_address()
    if address != "127.0.0.1":
        # Everyone in the household edits the same plan
        print(f"Shared with other devices at: http://{address}:{APP_PORT}")
    uvicorn.run(app, host=APP_HOST, port=APP_PORT, log_config=None)
