from flask import Request, Response

CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"
CORS_ALLOW_METHODS = "GET, POST, OPTIONS"


def bearer_token(req: Request) -> str | None:
    """Token from `Authorization: Bearer <token>`, or None if absent/malformed."""
    header = req.headers.get("Authorization") or ""
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def client_ip(req: Request) -> str | None:
    """Best-effort origin address from forwarding headers; None when not supplied."""
    forwarded = req.headers.get("X-Forwarded-For") or ""
    first = forwarded.split(",")[0].strip()
    if first:
        return first[:45]
    real_ip = (req.headers.get("X-Real-IP") or "").strip()
    return real_ip[:45] or None


def apply_cors_headers(resp: Response, allow_origin: str = "*") -> Response:
    resp.headers["Access-Control-Allow-Origin"] = allow_origin
    resp.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
    resp.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    return resp
