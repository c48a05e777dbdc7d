"""
Provider credential resolution.

Builds authenticated ``google-genai`` clients. Every credential problem
(missing key, malformed service-account JSON, unreadable key file)
surfaces as AuthenticationError before any network call.
"""

import json
import os
from typing import Any, Dict, Optional, Tuple

import structlog
from google import genai
from google.oauth2 import service_account

from menu_analysis.domain.shared.errors import AuthenticationError

logger = structlog.get_logger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


def create_gemini_client(api_key: Optional[str]) -> genai.Client:
    """
    Create a Gemini client authenticated with an API key.

    Raises:
        AuthenticationError: If the key is missing
    """
    if not api_key:
        raise AuthenticationError(
            "Gemini API key not configured. Set GEMINI_API_KEY in .env"
        )
    return genai.Client(api_key=api_key)


def load_service_account_info(raw: Optional[str]) -> Dict[str, Any]:
    """
    Parse service-account credentials.

    Args:
        raw: Inline service-account JSON, or a path to a key file

    Returns:
        Parsed service-account info

    Raises:
        AuthenticationError: If missing, unreadable or malformed
    """
    if not raw:
        raise AuthenticationError(
            "Vertex credentials not configured. Set VERTEX_CREDENTIALS in .env"
        )

    text = raw.strip()
    if not text.startswith("{"):
        if not os.path.isfile(text):
            raise AuthenticationError(f"Vertex credentials file not found: {text}")
        try:
            with open(text, encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise AuthenticationError(f"Cannot read Vertex credentials file: {e}") from e

    try:
        info = json.loads(text)
    except json.JSONDecodeError as e:
        raise AuthenticationError("Vertex credentials are not valid JSON") from e

    if not isinstance(info, dict) or info.get("type") != "service_account":
        raise AuthenticationError("Vertex credentials are not a service-account key")
    return info


def create_vertex_client(
    credentials_json: Optional[str],
    project_id: Optional[str],
    location: str,
) -> Tuple[genai.Client, str]:
    """
    Create a Vertex AI client from service-account credentials.

    The project defaults to the one named in the key.

    Returns:
        Tuple of (client, resolved project id)

    Raises:
        AuthenticationError: On any credential problem
    """
    info = load_service_account_info(credentials_json)
    try:
        credentials = service_account.Credentials.from_service_account_info(
            info, scopes=[CLOUD_PLATFORM_SCOPE]
        )
    except (ValueError, KeyError) as e:
        raise AuthenticationError(f"Malformed Vertex service-account key: {e}") from e

    project = project_id or info.get("project_id")
    if not project:
        raise AuthenticationError("Vertex project id not configured. Set VERTEX_PROJECT_ID")

    logger.debug(
        "Vertex credentials loaded",
        project_id=project,
        location=location,
        client_email=info.get("client_email"),
    )
    client = genai.Client(
        vertexai=True,
        project=project,
        location=location,
        credentials=credentials,
    )
    return client, project
