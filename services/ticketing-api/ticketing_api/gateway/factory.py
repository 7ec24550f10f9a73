from __future__ import annotations

import httpx

from shared.contracts import GatewayMode
from ticketing_api.core.config import Settings
from ticketing_api.gateway.contracts import PaymentGateway
from ticketing_api.gateway.daraja import DarajaCredentials, DarajaGatewayClient
from ticketing_api.gateway.simulated import SimulatedGatewayClient


class GatewayClientFactory:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def create(self) -> PaymentGateway:
        if self._settings.gateway_mode == GatewayMode.SIMULATED:
            return SimulatedGatewayClient()
        client = httpx.AsyncClient(
            base_url=self._settings.resolved_mpesa_base_url,
            timeout=self._settings.mpesa_timeout_seconds,
        )
        return DarajaGatewayClient(client, DarajaCredentials.from_settings(self._settings))
