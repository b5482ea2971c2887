import uvicorn
from dotenv import load_dotenv

load_dotenv()

from fallback_proxy.api.server import app
from fallback_proxy.config.base.settings import SERVER_SETTINGS

if __name__ == "__main__":
    uvicorn.run(app, host=SERVER_SETTINGS["host"], port=SERVER_SETTINGS["port"])
