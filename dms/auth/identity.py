"""Identity provider (Firebase Authentication) token verification."""

import logging
import os
from typing import Optional, Dict
from google.oauth2 import id_token
from google.auth.transport import requests
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")


def verify_identity_token(id_token_str: str) -> Optional[Dict]:
    """Verify a Firebase ID token and extract user information.

    Args:
        id_token_str: ID token issued to the client by the identity provider

    Returns:
        Dictionary with user info (id, email, name), or None if invalid
    """
    try:
        claims = id_token.verify_firebase_token(
            id_token_str,
            requests.Request(),
            audience=FIREBASE_PROJECT_ID,
        )
    except ValueError as e:
        logger.info(f"Rejected identity token: {str(e)}")
        return None

    if not claims or not claims.get("sub"):
        return None

    return {
        "id": claims["sub"],
        "email": claims.get("email"),
        "name": claims.get("name"),
    }
