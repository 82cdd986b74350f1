"""
Signer that delegates to a wallet's JSON-RPC endpoint.

Typed data goes through ``eth_signTypedData_v4`` and raw digests through
``eth_sign``. The wallet decides how the key is custodied and whether a user
has to approve the request.
"""
import asyncio
import itertools
import json
import logging
import urllib.parse
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import SignerRejectedError
from ..utils import normalize_address, to_bytes, to_hex

logger = logging.getLogger(__name__)

# EIP-1193 "User Rejected Request"
USER_REJECTED_CODE = 4001

_MAX_SAFE_INTEGER = 2**53 - 1


def _jsonable(value: Any) -> Any:
    """Convert typed-data values into JSON-safe values (hex for bytes, str for big ints)."""
    if isinstance(value, (bytes, bytearray)):
        return to_hex(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value) if abs(value) > _MAX_SAFE_INTEGER else value
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


class JsonRpcSigner:
    """
    Signer adapter for a remote wallet reachable over JSON-RPC.
    """

    def __init__(
        self,
        rpc_url: str,
        address: str,
        retry_count: int = 3,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            rpc_url: Wallet JSON-RPC endpoint
            address: Account the wallet signs for
            retry_count: Number of retries for transient HTTP failures
            timeout: Timeout for HTTP requests in seconds
            session: Optional pre-configured requests session

        Raises:
            ValueError: If the URL doesn't use https (unless it is localhost/127.0.0.1)
        """
        parsed = urllib.parse.urlparse(rpc_url)
        host = parsed.netloc.split(':')[0]
        if parsed.scheme != 'https' and host not in ('localhost', '127.0.0.1'):
            raise ValueError(f"rpc_url must use https:// for security (got: {parsed.scheme}://)")

        self.rpc_url = rpc_url
        self.address = normalize_address(address)
        self.timeout = timeout
        self._ids = itertools.count(1)

        if session is None:
            session = requests.Session()
            retries = Retry(
                total=retry_count,
                backoff_factor=0.5,
                status_forcelist=[500, 502, 503, 504],
                allowed_methods=["POST"],
                raise_on_status=False,
                connect=retry_count,
                read=retry_count,
            )
            session.mount("http://", HTTPAdapter(max_retries=retries))
            session.mount("https://", HTTPAdapter(max_retries=retries))
        self.session = session

    def _request(self, method: str, params: List[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = self.session.post(self.rpc_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            logger.error(f"Signer request {method} failed: {e}")
            raise SignerRejectedError(f"Signer request {method} failed: {e}", cause=e) from e
        except ValueError as e:
            logger.error(f"Invalid JSON response from signer: {e}")
            raise SignerRejectedError(f"Invalid JSON response from signer: {e}", cause=e) from e

        error = body.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", error) if isinstance(error, dict) else error
            if code == USER_REJECTED_CODE:
                logger.info(f"Signature request {method} rejected by user")
                raise SignerRejectedError(f"User rejected the signature request: {message}")
            raise SignerRejectedError(f"Signer returned an error for {method}: {message}")

        if "result" not in body:
            raise SignerRejectedError(f"Missing result in signer response: {body}")
        return body["result"]

    async def sign_hash(self, digest: bytes) -> bytes:
        result = await asyncio.to_thread(self._request, "eth_sign", [self.address, to_hex(digest)])
        return to_bytes(result)

    async def sign_typed_data(self, typed_data: Dict[str, Any]) -> bytes:
        encoded = json.dumps(_jsonable(typed_data))
        result = await asyncio.to_thread(self._request, "eth_signTypedData_v4", [self.address, encoded])
        return to_bytes(result)
