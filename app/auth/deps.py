import logging
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from bson import ObjectId
from app.db import get_db
from app.auth.jwt import decode_access_token

logger = logging.getLogger(__name__)

ACCESS_COOKIE_NAME = "access_token"

bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    access_token: Optional[str] = Cookie(default=None, alias=ACCESS_COOKIE_NAME),
):
    # Authorization header wins; the browser frontend sends the cookie instead
    if creds is not None and creds.scheme.lower() == "bearer":
        token = creds.credentials
    elif access_token:
        token = access_token
    else:
        raise HTTPException(status_code=401, detail="Missing access token")

    try:
        payload = decode_access_token(token)
        user_id = payload.get("sub")
    except ValueError:
        logger.warning("Rejected access token on %s", request.url.path)
        raise HTTPException(status_code=401, detail="Invalid access token")

    if not user_id or not ObjectId.is_valid(user_id):
        raise HTTPException(status_code=401, detail="Invalid access token subject")

    db = get_db(request)
    user = await db.users.find_one({"_id": ObjectId(user_id)})

    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
    }
