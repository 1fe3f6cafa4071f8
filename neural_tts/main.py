"""Main entry point for the Neural TTS service.

Usage:
    neural-tts
    python -m neural_tts.main
    uvicorn neural_tts.main:app --reload
"""

import uvicorn

from neural_tts.api.app import create_app
from neural_tts.config import get_settings

app = create_app()


def run() -> None:
    settings = get_settings()

    uvicorn.run(
        "neural_tts.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload,
    )


if __name__ == "__main__":
    run()
