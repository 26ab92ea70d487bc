"""
Base class for Google OAuth integrations.

Provides the installed-app OAuth flow, credential storage and refresh,
and API service initialization for Google API integrations.
"""
from __future__ import annotations

import logging
from abc import ABC
from datetime import datetime
from typing import Any, Dict, List, Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from ...config import settings
from ...errors import ConfigurationError, NotAuthenticatedError
from ..token_storage import delete_token, get_token, has_token, save_token

logger = logging.getLogger(__name__)


class GoogleOAuthClient(ABC):
    """
    Abstract base class for Google OAuth integrations.

    Class Attributes (must be defined by subclasses):
        SERVICE_NAME: Token storage key (e.g., "google_calendar")
        API_NAME: Google API name (e.g., "calendar")
        API_VERSION: API version (e.g., "v3")
        SCOPES: List of OAuth scopes required

    The service handle is built once and shared; google-auth refreshes the
    access token underneath it when it expires.
    """

    SERVICE_NAME: str
    API_NAME: str
    API_VERSION: str
    SCOPES: List[str]

    def __init__(self):
        self._service = None
        self._credentials: Optional[Credentials] = None

    # ----------------------------------------------------------------------- #
    # Connection Status
    # ----------------------------------------------------------------------- #

    def is_connected(self) -> bool:
        """Check if the integration has valid (or refreshable) credentials."""
        if not has_token(self.SERVICE_NAME):
            logger.info(f"[{self.SERVICE_NAME}] No token found")
            return False

        creds = self._get_credentials()
        if creds is None:
            return False
        if not creds.valid:
            logger.info(f"[{self.SERVICE_NAME}] Credentials not valid - expired: {creds.expired}")
            return False
        return True

    # ----------------------------------------------------------------------- #
    # OAuth Flow
    # ----------------------------------------------------------------------- #

    def authenticate(self, open_browser: bool = True) -> Credentials:
        """
        Run the installed-app flow with a local callback listener.

        Prints the authorization URL, waits for Google's redirect on
        settings.oauth_callback_port and stores the resulting tokens.

        Raises:
            ConfigurationError: If the OAuth keys file is missing or invalid
        """
        settings.import_local_oauth_keys()
        try:
            client_config = settings.oauth_client_config()
        except ValueError as e:
            raise ConfigurationError(str(e))

        flow = InstalledAppFlow.from_client_config(client_config, scopes=self.SCOPES)
        creds = flow.run_local_server(
            port=settings.oauth_callback_port,
            access_type="offline",
            prompt="consent",
            open_browser=open_browser,
            authorization_prompt_message="Please visit this URL to authenticate: {url}",
            success_message="Authentication successful! You can close this window.",
        )

        self._store(creds)
        self._credentials = creds
        self._service = None
        return creds

    def disconnect(self) -> bool:
        """
        Disconnect by removing stored credentials.

        Returns:
            True if credentials were removed
        """
        self._credentials = None
        self._service = None
        return delete_token(self.SERVICE_NAME)

    # ----------------------------------------------------------------------- #
    # Credentials & Service
    # ----------------------------------------------------------------------- #

    def _store(self, creds: Credentials) -> None:
        save_token(self.SERVICE_NAME, {
            "token": creds.token,
            "refresh_token": creds.refresh_token,
            "token_uri": creds.token_uri,
            "client_id": creds.client_id,
            "client_secret": creds.client_secret,
            "scopes": list(creds.scopes) if creds.scopes else self.SCOPES,
            "expiry": creds.expiry.isoformat() if creds.expiry else None,
        })

    def _get_credentials(self) -> Optional[Credentials]:
        """Get or refresh credentials from token storage."""
        if self._credentials and self._credentials.valid:
            return self._credentials

        token_data: Optional[Dict[str, Any]] = get_token(self.SERVICE_NAME)
        if not token_data:
            return None

        expiry = None
        if token_data.get("expiry"):
            # google-auth compares expiry against naive UTC
            expiry = datetime.fromisoformat(token_data["expiry"]).replace(tzinfo=None)

        creds = Credentials(
            token=token_data.get("token"),
            refresh_token=token_data.get("refresh_token"),
            token_uri=token_data.get("token_uri"),
            client_id=token_data.get("client_id"),
            client_secret=token_data.get("client_secret"),
            scopes=token_data.get("scopes", self.SCOPES),
            expiry=expiry,
        )

        if (creds.expired or not creds.valid) and creds.refresh_token:
            try:
                creds.refresh(Request())
            except RefreshError as e:
                logger.error(f"[{self.SERVICE_NAME}] Token refresh failed: {e}")
                return None
            self._store(creds)

        self._credentials = creds
        return creds

    def _get_service(self):
        """
        Get the Google API service, initializing if needed.

        Raises:
            NotAuthenticatedError: If no usable credentials are stored
        """
        if self._service:
            return self._service

        creds = self._get_credentials()
        if not creds:
            raise NotAuthenticatedError()

        self._service = build(self.API_NAME, self.API_VERSION, credentials=creds, cache_discovery=False)
        return self._service
