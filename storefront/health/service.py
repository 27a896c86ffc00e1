from urllib.parse import urlparse
import socket
from storefront.config import SUPABASE_URL
from storefront.infra.supabase_client import get_service_supabase
from storefront.inventory.service import oversell_monitor

TABLES = ["stores", "products", "orders", "order_items", "inventory_movements"]

def _check_table(client, name: str):
    try:
        res = client.table(name).select("id").limit(1).execute()
        cnt = len(res.data or [])
        return {"ok": True, "rows": cnt}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def health_supabase_info():
    effective_url = SUPABASE_URL
    parsed = urlparse(effective_url) if effective_url else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except OSError as e:
            dns_ok = False
            dns_error = str(e)

    info = {
        "supabase_url": effective_url,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {}
    }
    try:
        client = get_service_supabase()
        for t in TABLES:
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = all(v["ok"] for v in info["tables"].values())
    except Exception as e:
        info["error"] = str(e)
    return info

def health_inventory_info():
    """Oversells observés depuis le démarrage du processus (stock passé sous zéro après paiement)."""
    snapshot = oversell_monitor.snapshot()
    return {"ok": snapshot["oversell_events"] == 0, **snapshot}
