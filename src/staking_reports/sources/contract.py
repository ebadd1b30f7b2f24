"""Live metric source backed by the deployed staking contract."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from staking_reports.core.config import ReportingConfig
from staking_reports.core.errors import SourceUnavailable
from staking_reports.core.report_types import SourceKey
from staking_reports.domain.catalog import BundleSpec
from staking_reports.sources.abi import bundle_functions, decode_outputs, load_abi

LOGGER = logging.getLogger(__name__)

_CALL_ERRORS = (Web3Exception, aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError)


class ContractMetricSource:
    """
    Read-only adapter over the staking contract's metric views.

    Calls are made with an ABI fragment generated from the bundle schema,
    unless a full contract ABI was supplied.
    """
    source_key = SourceKey.STAKING_ADDRESS

    def __init__(
        self,
        address: str,
        rpc_url: str = "http://127.0.0.1:8545",
        request_timeout: float = 30.0,
        abi: Optional[List[Dict[str, Any]]] = None,
        web3: Optional[Any] = None,
    ):
        self.address = AsyncWeb3.to_checksum_address(address)
        self.rpc_url = rpc_url
        self.web3 = web3 or AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                rpc_url, request_kwargs={"timeout": aiohttp.ClientTimeout(total=request_timeout)}
            )
        )
        self._abi: Dict[str, Dict[str, Any]] = {
            entry["name"]: entry
            for entry in (abi or [])
            if entry.get("type") == "function" and entry.get("name")
        }
        LOGGER.debug("Contract metric source initialized for %s via %s", self.address, rpc_url)

    @classmethod
    def from_config(cls, config: ReportingConfig) -> "ContractMetricSource":
        abi = load_abi(config.abi_path) if config.abi_path else None
        return cls(
            address=config.require_address(),
            rpc_url=config.rpc_url,
            request_timeout=config.request_timeout,
            abi=abi,
        )

    @property
    def source_id(self) -> str:
        return self.address

    async def __aenter__(self) -> "ContractMetricSource":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release the provider's HTTP session."""
        await self.web3.provider.disconnect()
        LOGGER.debug("Closed RPC session to %s", self.rpc_url)

    async def ensure_connection(self) -> None:
        try:
            connected = await self.web3.is_connected()
        except _CALL_ERRORS as exc:
            raise SourceUnavailable(f"Unable to reach RPC endpoint {self.rpc_url}: {exc}") from exc
        if not connected:
            raise SourceUnavailable(f"Unable to connect to RPC endpoint {self.rpc_url}")

    async def call(self, function_abi: Dict[str, Any], *args: Any) -> Any:
        name = function_abi["name"]
        function_abi = self._abi.get(name, function_abi)
        contract = self.web3.eth.contract(address=self.address, abi=[function_abi])
        try:
            result = await getattr(contract.functions, name)(*args).call()
        except _CALL_ERRORS as exc:
            raise SourceUnavailable(f"Call to {name} on {self.address} failed: {exc}") from exc
        return decode_outputs(function_abi, result)

    async def fetch_bundle(self, spec: BundleSpec) -> Any:
        functions = bundle_functions(spec)
        LOGGER.debug("Fetching %s via %s", spec.key, ", ".join(f["name"] for f in functions))

        if spec.field_methods:
            by_method = {f["name"]: f for f in functions}
            return {
                field: await self.call(by_method[method])
                for field, method in spec.field_methods.items()
            }

        return await self.call(functions[0], *spec.args)
