"""Web server entry point for the Stockroom auth service"""

import os
import sys

import uvicorn

# Load environment variables from .env file BEFORE building the app
from dotenv import load_dotenv
load_dotenv()

from stockroom.utils.exceptions import StockroomError
from web.main import create_app


def main() -> None:
    host = os.getenv("WEB_HOST", "0.0.0.0")
    port = int(os.getenv("WEB_PORT", "8000"))

    try:
        app = create_app()
    except StockroomError as e:
        # Fail closed: unsafe configuration or unusable storage
        print(f"Refusing to start: {e}", file=sys.stderr)
        sys.exit(1)

    print("Starting Stockroom auth service...")
    print(f"Local server will be available at: http://localhost:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
