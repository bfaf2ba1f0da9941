from pathlib import Path

LOG_DIR = Path(__file__).parent / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOG_FILE = LOG_DIR / "session.jsonl"
APP_NAME = "HEX Tool"

BYTES_PER_ROW = 16
DEFAULT_ROWS = 16

# Кэш чанков: 64 КБ на чанк, не больше 16 МБ в памяти
CHUNK_SIZE = 0x10000
CACHE_BUDGET = 256 * CHUNK_SIZE

# блок последовательного чтения для поиска и сохранения
SCAN_BLOCK = 4 * CHUNK_SIZE

DEFAULT_STREAM_BITS = 8
