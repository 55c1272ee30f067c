# supabase_client.py — Supabase client initialization and proof storage

import time

from supabase import create_client, Client
from config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, PROOF_BUCKET

# Global Supabase client instance
_supabase_admin: Client = None


def get_supabase_admin() -> Client:
    """
    Get Supabase client with service role key (admin privileges).
    Uploads go through the backend so the bucket can stay private.
    """
    global _supabase_admin

    if _supabase_admin is None:
        if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in environment variables")

        _supabase_admin = create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)

    return _supabase_admin


def is_supabase_configured() -> bool:
    """Check if Supabase storage can be reached with the configured keys."""
    return bool(SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY)


def proof_path(user_id: str, pact_id: str, filename: str, now_ms: int | None = None) -> str:
    """Storage path for a proof: {user_id}/{pact_id}/{millis}.{ext}"""
    ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else "jpg"
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{user_id}/{pact_id}/{now_ms}.{ext}"


def upload_proof(user_id: str, pact_id: str, filename: str, content: bytes, content_type: str | None = None) -> str:
    """
    Store proof media and return its storage path.
    The path is what check-ins keep as proof_url; it is signed when rendered.
    """
    path = proof_path(user_id, pact_id, filename)
    get_supabase_admin().storage.from_(PROOF_BUCKET).upload(
        file=content,
        path=path,
        file_options={"content-type": content_type or "image/jpeg", "upsert": "true"},
    )
    return path
