import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


APP_NAME = os.getenv("APP_NAME", "Cooked")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# --- Database ---
# Local SQLite for development, the Supabase Postgres URL in production
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/pacts.db")

# Fix for common SQLAlchemy issues with postgres:// vs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))

# --- Supabase Configuration ---
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")

# --- Auth (Supabase-issued access tokens) ---
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")

# --- Check-ins ---
# Calendar day of a check-in is the submission time in this zone
CHECK_IN_TIMEZONE = os.getenv("CHECK_IN_TIMEZONE", "UTC")
PROOF_BUCKET = os.getenv("PROOF_BUCKET", "proofs")
AUTO_FOLD_EXCUSE = os.getenv("AUTO_FOLD_EXCUSE", "Ghosted 👻")
NOTIFY_FOLD_FUNCTION = os.getenv("NOTIFY_FOLD_FUNCTION", "notify-fold")

# --- Free tier limits ---
FREE_TIER_MAX_PACTS_PER_GROUP = int(os.getenv("FREE_TIER_MAX_PACTS_PER_GROUP", "3"))
UNLIMITED_SUBSCRIPTION_STATUSES = ("premium", "trial")

# --- Stats policy ---
# Whether check-ins recorded on non-due days count toward streaks and rates
STATS_COUNT_OFF_SCHEDULE = _flag("STATS_COUNT_OFF_SCHEDULE", "true")
# Whether a due day with no check-in at all counts as a fold
STATS_MISSED_DAY_IS_FOLD = _flag("STATS_MISSED_DAY_IS_FOLD", "false")
