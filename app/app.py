"""
EduEnroll: entry point.

Run as a script to launch the Streamlit page:
    python app/app.py

which is the same as:
    streamlit run frontend/streamlit_app.py

Also provides the process-wide pieces the page needs on every rerun:
    setup_logging(settings)   stdout + logs/app.log (rotating, 5 MB max, 3 backups)
    build_client(settings)    BackendClient for the hosted data/auth backend
"""

import logging
import logging.handlers
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script (python app/app.py)
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import ROOT_DIR, Settings, load_settings
from backend.client import BackendClient

PAGE_FILE = ROOT_DIR / "frontend" / "streamlit_app.py"

_HANDLER_TAG = "_eduenroll"

log = logging.getLogger("app")


def setup_logging(settings: Settings) -> None:
    """Configure the root logger once; Streamlit reruns call this repeatedly."""
    root = logging.getLogger()
    root.setLevel(settings.log_level)
    if any(getattr(h, _HANDLER_TAG, False) for h in root.handlers):
        return

    settings.log_dir.mkdir(parents=True, exist_ok=True)
    fmt = logging.Formatter("%(asctime)s  %(levelname)s  %(message)s")

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(fmt)

    # Rotate at 5 MB, keep 3 backups
    rotating = logging.handlers.RotatingFileHandler(
        settings.log_dir / "app.log", maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    rotating.setFormatter(fmt)

    for handler in (stream, rotating):
        setattr(handler, _HANDLER_TAG, True)
        root.addHandler(handler)


def build_client(settings: Settings) -> BackendClient:
    client = BackendClient.from_settings(settings)
    log.info("Backend client ready for %s", settings.backend_url)
    return client


def _launch() -> None:
    from streamlit.web import cli as stcli

    sys.argv = ["streamlit", "run", str(PAGE_FILE)]
    sys.exit(stcli.main())


if __name__ == "__main__":
    settings = load_settings()
    setup_logging(settings)
    log.info("=== EduEnroll: launching %s ===", PAGE_FILE.name)
    _launch()
