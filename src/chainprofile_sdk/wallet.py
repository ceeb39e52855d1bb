"""Wallet bridge: identity discovery and signing through a browser wallet."""

from typing import Any, Protocol

import httpx
import pydantic

from .client import response_error, response_json
from .exceptions import (
    ChainProfileError,
    NotFoundError,
    NoWalletError,
    SigningRefusedError,
)
from .types import ChainCall, Identity, SignedRequest


class Signer(Protocol):
    """Produces signed submissions for one address."""

    async def sign(self, call: ChainCall) -> SignedRequest: ...


class WalletBridge(Protocol):
    """Capability provider backed by a wallet extension."""

    async def enable(self, app_name: str) -> None: ...

    async def list_identities(self) -> list[Identity]: ...

    async def signer_for(self, address: str) -> Signer: ...

    async def aclose(self) -> None: ...


class HttpWalletBridge:
    """Client for a local wallet bridge exposing the extension over HTTP.

    The bridge relays requests to the wallet extension: it authorizes the
    app, lists the extension's accounts and asks the user to sign calls.

    Example:
        >>> bridge = HttpWalletBridge("http://127.0.0.1:9955")
        >>> await bridge.enable("my-polkadot-app")
        >>> identities = await bridge.list_identities()
    """

    def __init__(self, bridge_url: str = "http://127.0.0.1:9955", timeout: float = 30.0):
        """Initialize the bridge client.

        Args:
            bridge_url: Base URL of the wallet bridge
            timeout: Per-request timeout in seconds. Signing waits for the
                user, so keep this generous.
        """
        self._client = httpx.AsyncClient(base_url=bridge_url, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Make an HTTP request to the bridge.

        Raises:
            NoWalletError: Bridge unreachable
            NotFoundError: Unknown account or endpoint (404)
            SigningRefusedError: The user refused the request (403)
            ChainProfileError: Other errors
        """
        try:
            response = await self._client.request(method=method, url=path, json=json)
        except httpx.HTTPError as e:
            raise NoWalletError(f"Wallet bridge unavailable: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(response_error(response, "Not found"))
        elif response.status_code == 403:
            error_msg = response_error(response, "Request refused by wallet")
            raise SigningRefusedError(error_msg, reason=error_msg)
        elif not response.is_success:
            raise ChainProfileError(
                response_error(response, f"HTTP {response.status_code}")
            )

        return response_json(response)

    async def enable(self, app_name: str) -> None:
        """Authorize this app with the wallet extension.

        Raises:
            NoWalletError: No wallet extension behind the bridge
        """
        try:
            await self._request("POST", "/enable", json={"app_name": app_name})
        except NotFoundError as e:
            raise NoWalletError("No wallet extension installed") from e

    async def list_identities(self) -> list[Identity]:
        """List the accounts held by the wallet extension.

        Returns:
            Identities in the order the wallet reports them
        """
        accounts = await self._request("GET", "/accounts")
        if not isinstance(accounts, list):
            raise ChainProfileError(
                f"Unexpected accounts response: {type(accounts).__name__}"
            )
        try:
            return [
                Identity(
                    address=account["address"],
                    display_name=(account.get("meta") or {}).get("name"),
                )
                for account in accounts
            ]
        except (KeyError, TypeError, AttributeError, pydantic.ValidationError) as e:
            raise ChainProfileError(f"Malformed account entry: {e!r}") from e

    async def signer_for(self, address: str) -> "HttpSigner":
        """Get a signer for one of the wallet's accounts."""
        return HttpSigner(self, address)


class HttpSigner:
    """Signs calls by asking the wallet bridge, which prompts the user."""

    def __init__(self, bridge: HttpWalletBridge, address: str):
        self._bridge = bridge
        self.address = address

    async def sign(self, call: ChainCall) -> SignedRequest:
        """Sign a call with this signer's account.

        Returns:
            The signed request

        Raises:
            SigningRefusedError: The user cancelled the signing prompt
            ChainProfileError: The bridge answered without a signature
        """
        response = await self._bridge._request(
            "POST",
            "/sign",
            json={"address": self.address, "call": call.model_dump(mode="json")},
        )
        signature = response.get("signature") if isinstance(response, dict) else None
        if not isinstance(signature, str) or not signature:
            raise ChainProfileError("Wallet returned no signature")
        return SignedRequest(signer=self.address, call=call, signature=signature)
