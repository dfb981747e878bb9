"""Entrypoint so `python -m support_chat.main` starts the API.

The FastAPI app lives in `support_chat.src.app.main:app`.
"""

from support_chat.src.app.main import app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
