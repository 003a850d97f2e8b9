import os
from pathlib import Path

BASE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("FLOWRUNNER_DATA_DIR", str(BASE_DIR / "data")))

DATABASE_PATH = DATA_DIR / "flows.duckdb"

# Single autosave slot; overwritten on every graph mutation
AUTOSAVE_KEY = "flow"
EXPORT_FILENAME = "flow.json"

HTTP_TIMEOUT_SECONDS = float(os.getenv("FLOWRUNNER_HTTP_TIMEOUT", "30"))
CONCURRENT_EXECUTION = os.getenv("FLOWRUNNER_CONCURRENT", "0") == "1"
MAX_CONCURRENT_NODES = 4

SERVER_PORT = int(os.getenv("FLOWRUNNER_PORT", "5000"))
MAX_FILE_SIZE = 5 * 1024 * 1024  # flow documents only

DATA_DIR.mkdir(parents=True, exist_ok=True)
