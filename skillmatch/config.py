import os
from dotenv import load_dotenv

load_dotenv()

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

# Record store
MONGO_DETAILS = os.getenv("MONGO_DETAILS", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "skillmatch_db")

# Ollama oracles
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
LLM_MODEL = os.getenv("LLM_MODEL", "llama3.1:8b")
EMBED_MODEL = os.getenv("EMBED_MODEL", "nomic-embed-text")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "120"))
EMBED_TIMEOUT = float(os.getenv("EMBED_TIMEOUT", "30"))

# Vector index
VECTOR_BACKEND = os.getenv("VECTOR_BACKEND", "mongo").lower()  # mongo | memory
VECTOR_COLLECTION = os.getenv("VECTOR_COLLECTION", "vectors")
INDEX_POLL_INTERVAL = float(os.getenv("INDEX_POLL_INTERVAL", "2"))
INDEX_READY_TIMEOUT = float(os.getenv("INDEX_READY_TIMEOUT", "60"))

# HTTP
ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000"
    ).split(",") if o.strip()
]
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
