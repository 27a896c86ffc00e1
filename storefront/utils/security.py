from fastapi import Request, HTTPException, Depends
from typing import Dict, Any
import logging

from storefront.app_setup.dependencies import get_store_repository
from storefront.infra.supabase_client import get_supabase
from storefront.stores.models import Store
from storefront.stores.repository import StoreRepository

logger = logging.getLogger(__name__)

COOKIE_NAME = "sb_access"

def get_user_from_access_token(access_token: str) -> Dict[str, Any]:
    """Récupère et normalise l'utilisateur depuis supabase.auth.get_user(access_token)."""
    res = get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
        }
    return user or {}

def get_current_user(request: Request) -> Dict[str, Any]:
    # Hybride: priorité au Bearer, fallback cookie
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
    if not token:
        token = request.cookies.get(COOKIE_NAME)

    if not token:
        raise HTTPException(status_code=401, detail="Non authentifié")

    try:
        user = get_user_from_access_token(token)
    except Exception:
        logger.info("auth.token_rejected")
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    if not user.get("id"):
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    return {"id": str(user["id"]), "email": user.get("email"), "token": token}

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user

def require_merchant(
    user: Dict[str, Any] = Depends(get_current_user),
    stores: StoreRepository = Depends(get_store_repository),
) -> Store:
    """Marchand = utilisateur propriétaire d'une boutique (stores.user_id)."""
    store = stores.get_by_owner(user["id"])
    if not store:
        raise HTTPException(status_code=403, detail="Accès réservé aux marchands")
    return store
