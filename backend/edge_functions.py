"""
edge_functions.py — HTTP client for Supabase Edge Functions.
Push delivery (notify-fold and friends) lives in edge functions; the backend only
posts a JSON body to them with the service role key.
"""
import httpx

from config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY


def _headers():
    return {
        "apikey": SUPABASE_SERVICE_ROLE_KEY,
        "Authorization": f"Bearer {SUPABASE_SERVICE_ROLE_KEY}",
        "Content-Type": "application/json",
    }


def functions_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY)


def invoke_function(name: str, body: dict, timeout: float = 10) -> dict:
    """POST `body` to /functions/v1/{name} and return the decoded JSON reply."""
    url = f"{SUPABASE_URL.rstrip('/')}/functions/v1/{name}"
    with httpx.Client(timeout=timeout) as client:
        resp = client.post(url, json=body, headers=_headers())
        resp.raise_for_status()
        if not resp.content:
            return {}
        return resp.json()
