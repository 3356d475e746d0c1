"""Entry point.

The canonical ASGI app is `app.main:app`; this module lets `uvicorn main:app`
and `python main.py` work from the repository root.
"""

import os

from app.main import app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
