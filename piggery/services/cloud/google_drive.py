"""
Google Drive Backup Implementation

DESIGN DECISION: Google Drive is the backup target because:
1. Every farm owner with an Android phone already has an account
2. The drive.file scope limits the app to files it created itself
3. The backup is an ordinary JSON file the user can see and download

TRADEOFFS:
- One file per account, replaced wholesale on every save
- No ETag check before overwrite: the last device to save wins
- No retries: every retry is a fresh click by the user

Identity uses the OAuth installed-app flow (browser consent + local
redirect). The Drive REST API is called directly through google-auth's
AuthorizedSession, which attaches and refreshes the bearer token.
"""

import json
from typing import Optional

import requests
import structlog
from google.auth.exceptions import GoogleAuthError, TransportError
from google.auth.transport.requests import AuthorizedSession
from google_auth_oauthlib.flow import InstalledAppFlow

from piggery.config import GoogleDriveSettings, get_settings, is_placeholder_client_id
from piggery.services.cloud.interface import (
    AuthError,
    ConfigError,
    IdentityProviderInterface,
    NetworkError,
    RemoteFile,
    RemoteStoreInterface,
)
from piggery.services.storage.interface import FormatError


FILES_URL = "https://www.googleapis.com/drive/v3/files"
UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"

MULTIPART_BOUNDARY = "-------piggery_pro_boundary_314159"


logger = structlog.get_logger(__name__)


def build_multipart_body(name: str, content: str, boundary: str = MULTIPART_BOUNDARY) -> bytes:
    """
    Build a multipart/related upload body: JSON metadata part, then the
    JSON content part.
    """
    delimiter = f"\r\n--{boundary}\r\n"
    close_delim = f"\r\n--{boundary}--"
    metadata = {"name": name, "mimeType": "application/json"}

    body = (
        delimiter
        + "Content-Type: application/json; charset=UTF-8\r\n\r\n"
        + json.dumps(metadata)
        + delimiter
        + "Content-Type: application/json\r\n\r\n"
        + content
        + close_delim
    )
    return body.encode("utf-8")


def _drive_query_literal(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleOAuthIdentity(IdentityProviderInterface):
    """
    Google OAuth installed-app flow.

    prepare() builds the flow object from the client ID; authenticate()
    opens the consent page in a browser and waits for the redirect.
    """

    AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URI = "https://oauth2.googleapis.com/token"

    def __init__(self, settings: Optional[GoogleDriveSettings] = None):
        self._settings = settings or get_settings().google_drive
        self._flow: Optional[InstalledAppFlow] = None

    def prepare(self, client_id: str) -> None:
        if is_placeholder_client_id(client_id):
            raise ConfigError(
                "Please configure your Google Client ID in the System Menu first."
            )
        client_config = {
            "installed": {
                "client_id": client_id,
                "client_secret": self._settings.client_secret or "",
                "auth_uri": self.AUTH_URI,
                "token_uri": self.TOKEN_URI,
                "redirect_uris": ["http://localhost"],
            }
        }
        try:
            self._flow = InstalledAppFlow.from_client_config(
                client_config,
                scopes=self._settings.scopes,
            )
        except ValueError as e:
            raise ConfigError(f"Invalid Google client configuration: {e}") from e

    def authenticate(self):
        if self._flow is None:
            raise ConfigError("Google API has not been initialized")
        try:
            return self._flow.run_local_server(
                port=self._settings.oauth_port,
                prompt="consent",
            )
        except Exception as e:
            # Covers consent denial (oauthlib AccessDeniedError), a closed
            # browser tab and token endpoint failures alike.
            raise AuthError(f"Authentication failed: {e}") from e


class GoogleDriveClient(RemoteStoreInterface):
    """
    Minimal Drive v3 client for the single backup file.

    Endpoints used:
    - GET   /drive/v3/files?q=...                  (find by name)
    - POST  /upload/drive/v3/files?uploadType=multipart
    - PATCH /upload/drive/v3/files/{id}?uploadType=multipart
    - GET   /drive/v3/files/{id}?alt=media        (download)
    """

    def __init__(
        self,
        credentials=None,
        settings: Optional[GoogleDriveSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        if credentials is None and session is None:
            raise ValueError("Either credentials or a session is required")
        self._settings = settings or get_settings().google_drive
        self._session = session or AuthorizedSession(credentials)

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = self._session.request(
                method,
                url,
                timeout=self._settings.request_timeout_seconds,
                **kwargs,
            )
        except TransportError as e:
            raise NetworkError(f"Drive request failed: {e}") from e
        except GoogleAuthError as e:
            raise AuthError(f"Google rejected the stored credential: {e}") from e
        except requests.RequestException as e:
            raise NetworkError(f"Drive request failed: {e}") from e

        if response.status_code == 401:
            raise AuthError("Google session expired, please sign in again")
        if response.status_code >= 400:
            raise NetworkError(
                f"Drive API error {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: requests.Response) -> dict:
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Drive returned a non-JSON response: {e}") from e

    def find_file(self, name: str) -> list[RemoteFile]:
        response = self._request(
            "GET",
            FILES_URL,
            params={
                "q": f"name = '{_drive_query_literal(name)}' and trashed = false",
                "fields": "files(id, name)",
                "spaces": "drive",
            },
        )
        files = self._json(response).get("files", [])
        return [RemoteFile(id=f["id"], name=f.get("name", name)) for f in files]

    def _upload(self, method: str, url: str, name: str, content: str) -> RemoteFile:
        response = self._request(
            method,
            url,
            params={"uploadType": "multipart", "fields": "id, name"},
            headers={
                "Content-Type": f'multipart/related; boundary="{MULTIPART_BOUNDARY}"',
            },
            data=build_multipart_body(name, content),
        )
        payload = self._json(response)
        return RemoteFile(id=payload["id"], name=payload.get("name", name))

    def create_file(self, name: str, content: str) -> RemoteFile:
        logger.info("drive_create_file", name=name, size=len(content))
        return self._upload("POST", UPLOAD_URL, name, content)

    def update_file(self, file_id: str, name: str, content: str) -> RemoteFile:
        logger.info("drive_update_file", file_id=file_id, size=len(content))
        return self._upload("PATCH", f"{UPLOAD_URL}/{file_id}", name, content)

    def download_file(self, file_id: str) -> str:
        response = self._request(
            "GET",
            f"{FILES_URL}/{file_id}",
            params={"alt": "media"},
        )
        try:
            return response.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"Backup file is not UTF-8 text: {e}") from e


def drive_client_factory(settings: Optional[GoogleDriveSettings] = None):
    """Return a callable that turns OAuth credentials into a Drive client."""
    def factory(credentials) -> GoogleDriveClient:
        return GoogleDriveClient(credentials=credentials, settings=settings)
    return factory
