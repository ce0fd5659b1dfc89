import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()

FUZZY_SIMILARITY_THRESHOLD = float(os.getenv("FUZZY_SIMILARITY_THRESHOLD", "0.8"))
MAX_TRAVERSAL_DEPTH = int(os.getenv("MAX_TRAVERSAL_DEPTH", "256"))
RELATIONSHIP_SUGGESTION_LIMIT = int(os.getenv("RELATIONSHIP_SUGGESTION_LIMIT", "10"))

# Optional YAML file with extra per-id association rules
ASSOCIATION_RULES_PATH = os.getenv("ASSOCIATION_RULES_PATH", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
