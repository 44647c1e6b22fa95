import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

from neuroterm.api.routes import router

_app_dir = Path(__file__).resolve().parent
_project_root = _app_dir.parent

load_dotenv(_project_root / ".env", override=False)

# Configure logging
logging.basicConfig(
    level=os.environ.get("NEUROTERM_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="neuroterm", version="0.1.0")
app.include_router(router)

# Serve the terminal page (no build step).
# In some test/CI environments the static directory may be absent; don't fail import.
_static_dir = _app_dir / "static"
if _static_dir.exists():
    app.mount("/ui", StaticFiles(directory=str(_static_dir), html=True), name="ui")


@app.get("/")
async def _root() -> RedirectResponse:
    return RedirectResponse(url="/ui/")


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "neuroterm", "version": "0.1.0"}
