from typing import Any, Optional
from supabase import create_client, Client
from postgrest.exceptions import APIError
from storefront.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY

UNIQUE_VIOLATION = "23505"

_supabase: Optional[Client] = None
_service_supabase: Optional[Client] = None

def get_supabase() -> Client:
    """Client 'anon': utilisé uniquement pour vérifier les jetons d'accès (auth.get_user)."""
    global _supabase
    if _supabase is None:
        if not SUPABASE_URL or not SUPABASE_ANON:
            raise RuntimeError("SUPABASE_URL/SUPABASE_ANON_KEY manquants")
        _supabase = create_client(SUPABASE_URL, SUPABASE_ANON)
    return _supabase

def get_service_supabase() -> Client:
    """Client service-role (bypass RLS): toutes les lectures/écritures métier côté serveur."""
    global _service_supabase
    if not SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant pour get_service_supabase()")
    if _service_supabase is None:
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
    return _service_supabase

def error_code(exc: Exception) -> Optional[str]:
    """
    Extrait le code SQLSTATE d'une APIError PostgREST (ex: '23505' pour un doublon).
    Retourne None si l'exception ne porte pas de code exploitable.
    """
    if not isinstance(exc, APIError):
        return None
    code = getattr(exc, "code", None)
    if code:
        return str(code)
    if exc.args and isinstance(exc.args[0], dict):
        return exc.args[0].get("code")
    return None

def is_unique_violation(exc: Exception) -> bool:
    return error_code(exc) == UNIQUE_VIOLATION

def rows_of(res: Any) -> list:
    """Normalise res.data en liste de lignes (PostgREST renvoie list, dict ou None)."""
    data = getattr(res, "data", None)
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]
