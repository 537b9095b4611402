import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./studyforge.db")
SUBSCRIPTION_BACKEND = os.getenv("SUBSCRIPTION_BACKEND", "sql")  # sql | supabase

# ✅ Supabase (identity + optional subscription store)
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")

# ✅ LLM
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "gemini")  # gemini | openai
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

# ✅ Request shaping
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "20"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "3600"))
RATE_LIMIT_MAX_TRACKED_USERS = int(os.getenv("RATE_LIMIT_MAX_TRACKED_USERS", "10000"))
CACHE_TTL_MINUTES = int(os.getenv("CACHE_TTL_MINUTES", "60"))
CACHE_MAX_ENTRIES = int(os.getenv("CACHE_MAX_ENTRIES", "1000"))
RETRY_MAX_ATTEMPTS = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
RETRY_DELAY_SECONDS = float(os.getenv("RETRY_DELAY_SECONDS", "1.0"))
RETRY_BACKOFF_MULTIPLIER = float(os.getenv("RETRY_BACKOFF_MULTIPLIER", "2"))
METRICS_BUFFER_SIZE = int(os.getenv("METRICS_BUFFER_SIZE", "1000"))

# ✅ Usage accounting
USAGE_RESET_DAYS = int(os.getenv("USAGE_RESET_DAYS", "30"))

# ✅ App
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
