import logging

import uvicorn

from routemetrics.api.main import create_app
from routemetrics.core.config import ServerSettings

app = create_app()


def run():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    server = ServerSettings.from_env()
    uvicorn.run(app, host=server.host, port=server.port)


if __name__ == "__main__":
    run()
