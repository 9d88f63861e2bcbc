"""
Solana JSON-RPC adapter for account existence queries.

Answers existence lookups with getMultipleAccounts over HTTP.
"""

import itertools
from typing import Any, List, Optional

import httpx
import structlog

from bulk_transfer.config import TransferSettings, get_settings
from bulk_transfer.errors import NetworkQueryError
from bulk_transfer.node.interface import NetworkQuery

logger = structlog.get_logger(__name__)


class SolanaRpcAdapter(NetworkQuery):
    """
    JSON-RPC adapter.

    Implements the NetworkQuery interface using a Solana RPC node.
    Addresses are split into calls of at most rpc_max_accounts_per_request.
    """

    def __init__(
        self,
        settings: Optional[TransferSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the RPC adapter.

        Args:
            settings: Transfer settings. Uses global settings if not provided.
            client: Preconfigured HTTP client (its lifecycle stays with the caller)
        """
        self.settings = settings or get_settings()
        self.rpc_url = self.settings.resolved_rpc_url
        self.max_accounts = self.settings.rpc_max_accounts_per_request
        self._client = client
        self._owns_client = client is None
        self._request_ids = itertools.count(1)

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=self.settings.rpc_timeout_seconds,
        )
        self._owns_client = True
        logger.info("rpc_connected", rpc_url=self.rpc_url)

    async def disconnect(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.info("rpc_disconnected")

    async def _rpc(self, method: str, params: list) -> Any:
        """Make a JSON-RPC call and return its result field."""
        if not self._client:
            await self.connect()

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }

        try:
            response = await self._client.post(self.rpc_url, json=payload)
        except httpx.RequestError as e:
            logger.error("rpc_request_error", method=method, error=str(e))
            raise NetworkQueryError(f"RPC request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "rpc_request_failed",
                method=method,
                status=response.status_code,
                error=response.text,
            )
            raise NetworkQueryError(
                f"RPC HTTP error {response.status_code}: {response.text}",
                error_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise NetworkQueryError(f"RPC returned invalid JSON: {e}") from e

        if not isinstance(body, dict):
            raise NetworkQueryError(f"RPC reply is not a JSON object: {body!r}")

        if body.get("error"):
            error = body["error"]
            logger.error("rpc_error_reply", method=method, error=error)
            if not isinstance(error, dict):
                raise NetworkQueryError(f"RPC error: {error}")
            raise NetworkQueryError(
                f"RPC error: {error.get('message', error)}",
                error_code=error.get("code"),
            )

        if "result" not in body:
            raise NetworkQueryError(f"RPC reply has no result: {body!r}")

        return body["result"]

    async def get_multiple_accounts(self, addresses: List[str]) -> List[Optional[dict]]:
        """
        Fetch raw account info for up to max_accounts addresses.

        Returns:
            One entry per address; None where no account exists
        """
        result = await self._rpc(
            "getMultipleAccounts",
            [
                addresses,
                {
                    "encoding": "base64",
                    "commitment": self.settings.commitment.value,
                    "dataSlice": {"offset": 0, "length": 0},
                },
            ],
        )

        try:
            values = result["value"]
        except (KeyError, TypeError) as e:
            raise NetworkQueryError(f"Malformed getMultipleAccounts reply: {result!r}") from e

        if not isinstance(values, list):
            raise NetworkQueryError(f"Malformed getMultipleAccounts reply: {result!r}")

        if len(values) != len(addresses):
            raise NetworkQueryError(
                f"getMultipleAccounts returned {len(values)} entries for {len(addresses)} addresses"
            )

        return values

    async def accounts_exist(self, addresses: List[str]) -> List[bool]:
        """Check existence for any number of addresses, in input order."""
        flags: List[bool] = []

        for start in range(0, len(addresses), self.max_accounts):
            window = addresses[start:start + self.max_accounts]
            values = await self.get_multiple_accounts(window)
            flags.extend(value is not None for value in values)

        logger.debug(
            "accounts_checked",
            count=len(addresses),
            existing=sum(flags),
        )
        return flags
