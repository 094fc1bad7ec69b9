"""Signed request client for the wallet custody API.

Every request carries an HMAC-SHA256 signature over
`timestamp + METHOD + path + body`, base64 encoded, plus static credential
headers. Responses are wrapped in `{"code": "0", "data": [...]}`; any other
code is a failure even on HTTP 200. Nothing is retried here.
"""

import base64
import hashlib
import hmac
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from walletbot.config import Settings
from walletbot.custody.models import BroadcastResult, SignInfo, TokenAsset

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.okx.com"

BALANCE_PATH = "/api/v5/wallet/asset/token-balances-by-address"
SIGN_INFO_PATH = "/api/v5/wallet/pre-transaction/sign-info"
BROADCAST_PATH = "/api/v5/wallet/pre-transaction/broadcast-transaction"

SUCCESS_CODE = "0"


class WalletApiError(Exception):
    """Request-level failure. `raw` keeps the response for diagnostics."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        raw: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.raw = raw


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2024-01-01T00:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def encode_body(body: Optional[dict]) -> str:
    """Serialize a request body exactly as it is signed and sent."""
    if body is None:
        return ""
    return json.dumps(body, separators=(",", ":"))


class WalletApiClient:
    """Client for balance, sign-info and broadcast endpoints.

    Docs: https://web3.okx.com/build/docs/waas/walletapi-introduction
    """

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        passphrase: str,
        project_id: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client.

        Args:
            api_key: API key
            secret_key: Shared HMAC secret (never logged)
            passphrase: API passphrase
            project_id: Project id
            base_url: API host
            timeout: HTTP timeout in seconds (None = no timeout)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self._secret_key = secret_key
        self._passphrase = passphrase
        self.project_id = project_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "WalletApiClient":
        return cls(
            api_key=settings.okx_api_key,
            secret_key=settings.okx_secret_key,
            passphrase=settings.okx_passphrase,
            project_id=settings.okx_project_id,
            base_url=settings.okx_base_url,
            timeout=settings.api_timeout,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self.base_url!r}, project_id={self.project_id!r})"

    # Signing

    def sign(self, timestamp: str, method: str, path: str, body: str = "") -> str:
        """Base64 HMAC-SHA256 over timestamp + METHOD + path + body."""
        prehash = f"{timestamp}{method.upper()}{path}{body}"
        mac = hmac.new(self._secret_key.encode(), prehash.encode(), hashlib.sha256)
        return base64.b64encode(mac.digest()).decode()

    def build_headers(self, method: str, path: str, body: str = "", timestamp: Optional[str] = None) -> dict:
        """Build authenticated headers. The signed and sent timestamp are the same value."""
        timestamp = timestamp or iso_timestamp()
        return {
            "Content-Type": "application/json",
            "OK-ACCESS-KEY": self.api_key,
            "OK-ACCESS-SIGN": self.sign(timestamp, method, path, body),
            "OK-ACCESS-TIMESTAMP": timestamp,
            "OK-ACCESS-PASSPHRASE": self._passphrase,
            "OK-ACCESS-PROJECT": self.project_id,
        }

    # Transport

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> list:
        """Send a signed request and return the envelope's `data` list.

        Raises:
            WalletApiError: Network failure, non-2xx, malformed JSON, or non-success code.
        """
        method = method.upper()
        content = encode_body(body)
        headers = self.build_headers(method, path, content)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers=headers,
                    content=content or None,
                    params=params,
                )
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {type(e).__name__}: {e}")
            raise WalletApiError(f"Network error: {e}") from e

        if not response.is_success:
            logger.error(f"{method} {path} returned HTTP {response.status_code}: {response.text[:500]}")
            raise WalletApiError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                raw=response.text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"{method} {path} returned malformed JSON: {response.text[:500]}")
            raise WalletApiError(
                "Malformed JSON response",
                status_code=response.status_code,
                raw=response.text,
            ) from e

        if not isinstance(payload, dict):
            raise WalletApiError("Unexpected response envelope", status_code=response.status_code, raw=payload)

        code = str(payload.get("code"))
        if code != SUCCESS_CODE:
            msg = payload.get("msg") or "Unknown error"
            logger.warning(f"{method} {path} returned code {code}: {msg}")
            raise WalletApiError(msg, code=code, status_code=response.status_code, raw=payload)

        data = payload.get("data")
        if data is None:
            return []
        if not isinstance(data, list):
            raise WalletApiError("Unexpected data field", code=code, status_code=response.status_code, raw=payload)
        return data

    def _first(self, data: list, path: str) -> dict:
        if not data or not isinstance(data[0], dict):
            raise WalletApiError(f"Empty response from {path}", code=SUCCESS_CODE, raw=data)
        return data[0]

    # Endpoints

    async def get_token_balances(self, address: str, chain_index: str) -> list[TokenAsset]:
        """Get native coin balance entries for an address."""
        body = {
            "address": address,
            "tokenAddresses": [{"chainIndex": chain_index, "tokenAddress": ""}],
        }
        data = await self.request("POST", BALANCE_PATH, body)

        assets = []
        try:
            for item in data:
                for asset in item.get("tokenAssets", []):
                    assets.append(TokenAsset.model_validate(asset))
        except (AttributeError, ValidationError) as e:
            raise WalletApiError(f"Malformed balance response: {e}", code=SUCCESS_CODE, raw=data) from e
        return assets

    async def get_sign_info(self, chain_index: str, from_addr: str, to_addr: str, tx_amount: str) -> SignInfo:
        """Fetch nonce and gas parameters for a transfer.

        Args:
            chain_index: Chain identifier
            from_addr: Sender address
            to_addr: Destination address
            tx_amount: Amount in base units as a decimal string
        """
        body = {
            "chainIndex": chain_index,
            "fromAddr": from_addr,
            "toAddr": to_addr,
            "txAmount": tx_amount,
        }
        data = await self.request("POST", SIGN_INFO_PATH, body)
        try:
            return SignInfo.model_validate(self._first(data, SIGN_INFO_PATH))
        except ValidationError as e:
            raise WalletApiError(f"Malformed sign-info response: {e}", code=SUCCESS_CODE, raw=data) from e

    async def broadcast_transaction(self, signed_tx: str, chain_index: str, address: str) -> BroadcastResult:
        """Submit a signed transaction. Irreversible once accepted."""
        body = {
            "signedTx": signed_tx,
            "chainIndex": chain_index,
            "address": address,
        }
        data = await self.request("POST", BROADCAST_PATH, body)
        try:
            return BroadcastResult.model_validate(self._first(data, BROADCAST_PATH))
        except ValidationError as e:
            raise WalletApiError(f"Malformed broadcast response: {e}", code=SUCCESS_CODE, raw=data) from e
