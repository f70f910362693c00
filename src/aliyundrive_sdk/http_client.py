"""
HTTP client for the AliyunDrive API

This module implements the remote operations the credential managers
depend on: refreshing the access token, registering and renewing a device
session and looking up the current user. File APIs are not part of this SDK.
"""

import json
import logging
from typing import Dict, Optional, Any
from urllib.parse import urljoin

# HTTP client imports with fallback
try:
    import requests
    from requests.adapters import HTTPAdapter
    from urllib3.util.retry import Retry
    REQUESTS_AVAILABLE = True
except ImportError:
    REQUESTS_AVAILABLE = False
    requests = None
    HTTPAdapter = None
    Retry = None

from .config import ServerConfig, DEFAULT_DEVICE_NAME, DEFAULT_MODEL_NAME
from .exceptions import (
    ApiError,
    RefreshRejected,
    RefreshTransportError,
    ServerCommunicationError,
    UnsupportedPlatformError,
)
from .auth.types import SessionRegistration, TokenRefreshResult, UserInfo

logger = logging.getLogger(__name__)

USER_AGENT = 'AliyunDrive-Python-SDK/0.1.0'


class AliyunDriveHttpClient:
    """
    HTTP client for the AliyunDrive API.

    Requests are JSON POSTs. Error bodies of the form
    ``{"code": ..., "message": ...}`` are raised as ``ApiError``.
    """

    def __init__(self, config: Optional[ServerConfig] = None, session: Optional[Any] = None):
        """
        Initialize the HTTP client.

        Args:
            config: Server configuration settings
            session: Pre-built ``requests.Session`` (mainly for testing)
        """
        if session is None and not REQUESTS_AVAILABLE:
            raise UnsupportedPlatformError(
                "HTTP client requires 'requests' package. Install with: pip install requests",
                "REQUESTS_UNAVAILABLE"
            )

        self.config = config or ServerConfig()
        self.session = session if session is not None else self._create_session()

        # API endpoints
        self.endpoints = {
            'refresh_token': 'token/refresh',
            'user_info': 'v2/user/get',
            'create_session': 'users/v1/users/device/create_session',
            'renew_session': 'users/v1/users/device/renew_session',
        }

        logger.info(f"Initialized AliyunDrive HTTP client for server: {self.config.base_url}")

    def _create_session(self):
        """Create HTTP session with retry logic."""
        session = requests.Session()

        # Configure retry strategy
        retry_strategy = Retry(
            total=self.config.retry_attempts,
            status_forcelist=[429, 500, 502, 503, 504],
            # POSTs are never resent once the server has seen them; connect errors still retry
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            backoff_factor=self.config.retry_backoff_factor,
            raise_on_status=False,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        # Set default headers
        session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'User-Agent': USER_AGENT,
        })

        return session

    def _make_request(self, endpoint: str, body: Dict[str, Any],
                      headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        POST a JSON body and return the decoded response.

        Args:
            endpoint: API endpoint path
            body: JSON request body
            headers: Extra request headers

        Returns:
            dict: Response JSON data

        Raises:
            ApiError: If the server returned an error body
            ServerCommunicationError: On HTTP or network errors
        """
        url = urljoin(self.config.base_url, endpoint)

        try:
            logger.debug(f"Making POST request to {url}")
            response = self.session.request(
                'POST',
                url,
                data=json.dumps(body),
                headers=headers or {},
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        except requests.exceptions.Timeout:
            raise ServerCommunicationError(f"Request timeout after {self.config.timeout} seconds", "TIMEOUT")
        except requests.exceptions.ConnectionError as e:
            raise ServerCommunicationError(f"Connection error: {e}", "CONNECTION_ERROR")
        except requests.exceptions.RequestException as e:
            raise ServerCommunicationError(f"Request failed: {e}")

        try:
            data = response.json()
        except ValueError as e:
            if not response.ok:
                raise ServerCommunicationError(
                    f"HTTP {response.status_code}: {response.reason}",
                    "HTTP_ERROR",
                    http_status=response.status_code
                )
            raise ServerCommunicationError(f"Invalid JSON response: {e}", "INVALID_RESPONSE",
                                           http_status=response.status_code)

        if isinstance(data, dict) and (data.get('code') or data.get('message')):
            raise ApiError(
                str(data.get('code') or ''),
                str(data.get('message') or ''),
                http_status=response.status_code,
            )

        if not response.ok:
            raise ServerCommunicationError(
                f"HTTP {response.status_code}: {response.reason}",
                "HTTP_ERROR",
                http_status=response.status_code
            )

        if not isinstance(data, dict):
            raise ServerCommunicationError("Response body must be a JSON object", "INVALID_RESPONSE",
                                           http_status=response.status_code)
        return data

    @staticmethod
    def _credential_headers(access_token: str, device_id: Optional[str]) -> Dict[str, str]:
        headers = {'Authorization': f'Bearer {access_token}'}
        if device_id:
            headers['X-Device-Id'] = device_id
        return headers

    def refresh_access_token(self, refresh_token: str) -> TokenRefreshResult:
        """
        Exchange a refresh token for a new access token.

        This call carries no access token or signature.

        Args:
            refresh_token: Current refresh token

        Returns:
            TokenRefreshResult: New access token, rotated refresh token, lifetime

        Raises:
            RefreshRejected: If the server refused the refresh token
            RefreshTransportError: On network errors or a malformed response
        """
        try:
            data = self._make_request(self.endpoints['refresh_token'], {'refresh_token': refresh_token})
        except ApiError as e:
            raise RefreshRejected(
                f"Refresh token rejected: {e.api_message or e.code}",
                details={'code': e.code, 'http_status': e.http_status}
            ) from e
        except ServerCommunicationError as e:
            raise RefreshTransportError(
                f"Token refresh request failed: {e}",
                details={'http_status': e.http_status}
            ) from e

        try:
            return TokenRefreshResult(
                access_token=str(data['access_token']),
                refresh_token=str(data['refresh_token']),
                expires_in=int(data['expires_in']),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RefreshTransportError(f"Malformed token refresh response: missing or invalid {e}") from e

    def create_session(
        self,
        access_token: str,
        device_id: str,
        public_key_hex: str,
        signature: str,
        device_name: str = DEFAULT_DEVICE_NAME,
        model_name: str = DEFAULT_MODEL_NAME,
    ) -> SessionRegistration:
        """
        Publish a device public key together with its signature.

        Args:
            access_token: Valid bearer token
            device_id: Device identifier bound into the signature
            public_key_hex: Uncompressed SEC1 public key in hex
            signature: Signature header value
            device_name: Display name of the device
            model_name: Display model of the device

        Returns:
            SessionRegistration: ``accepted`` is True only if the server
            reported both ``result`` and ``success``

        Raises:
            ServerCommunicationError: On network or server errors
        """
        headers = self._credential_headers(access_token, device_id)
        headers['X-Signature'] = signature

        data = self._make_request(
            self.endpoints['create_session'],
            {'deviceName': device_name, 'modelName': model_name, 'pubKey': public_key_hex},
            headers=headers,
        )

        accepted = bool(data.get('result')) and bool(data.get('success', True))
        logger.debug(f"Session registration response: result={data.get('result')}, success={data.get('success')}")
        return SessionRegistration(accepted=accepted, message=data.get('message'))

    def renew_session(self, access_token: str, device_id: str, signature: str) -> SessionRegistration:
        """
        Extend an already registered device session.

        The request body is empty; the session is identified by the
        credential headers. Any non-error response counts as accepted unless
        it explicitly reports ``result`` or ``success`` as false.

        Raises:
            ServerCommunicationError: On network or server errors
        """
        headers = self._credential_headers(access_token, device_id)
        headers['X-Signature'] = signature

        data = self._make_request(self.endpoints['renew_session'], {}, headers=headers)

        accepted = bool(data.get('result', True)) and bool(data.get('success', True))
        logger.debug(f"Session renewal response: accepted={accepted}")
        return SessionRegistration(accepted=accepted, message=data.get('message'))

    def get_user_info(self, access_token: str, device_id: Optional[str] = None) -> UserInfo:
        """Fetch the profile of the token's owner."""
        data = self._make_request(
            self.endpoints['user_info'],
            {},
            headers=self._credential_headers(access_token, device_id),
        )

        try:
            return UserInfo(
                user_id=str(data['user_id']),
                default_drive_id=str(data['default_drive_id']),
                nick_name=data.get('nick_name'),
                user_name=data.get('user_name'),
            )
        except KeyError as e:
            raise ServerCommunicationError(f"Malformed user info response: missing {e}", "INVALID_RESPONSE")

    def close(self):
        """Close HTTP session."""
        if self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
