# Discovers the provider relays in the relays package and keeps one instance of each.
# A relay whose provider is not configured (missing API key) fails to construct
# and is simply left out, so its route answers 404.
# Author: Shibo Li
# Date: 2025-06-21
# Version: 0.1.0

import inspect
import pkgutil
from functools import lru_cache
from typing import Dict, List, Optional
from mcp_chat import relays as relays_package
from mcp_chat.relays.base_relay import BaseRelay
from mcp_chat.utils.logger import console


class RelayRegistry:
    """
    Maps provider ids to relay instances.
    """
    def __init__(self, relays: Optional[List[BaseRelay]] = None):
        self.relays: Dict[str, BaseRelay] = {}
        if relays is None:
            self._discover_relays()
        else:
            for relay in relays:
                self.register(relay)
        console.success(f"Relay discovery complete. Found {len(self.relays)} relays: {self.available()}")

    def _discover_relays(self):
        """
        Imports every module in the relays package and instantiates each BaseRelay subclass found.
        """
        for _, modname, _ in pkgutil.iter_modules(relays_package.__path__, f"{relays_package.__name__}."):
            if modname.endswith(".base_relay"):
                continue
            try:
                module = __import__(modname, fromlist="dummy")
            except Exception as e:
                console.error(f"Failed to import relay module {modname}: {e}")
                continue
            for _, obj in inspect.getmembers(module, inspect.isclass):
                if not issubclass(obj, BaseRelay) or obj is BaseRelay or obj.__module__ != modname:
                    continue
                try:
                    self.register(obj())
                except Exception as e:
                    console.error(f"Failed to register relay '{getattr(obj, 'name', obj.__name__)}': {e}")

    def register(self, relay: BaseRelay):
        self.relays[relay.name] = relay
        console.info(f"Successfully registered relay: '{relay.name}'")

    def get(self, provider: str) -> Optional[BaseRelay]:
        return self.relays.get(provider)

    def available(self) -> List[str]:
        return sorted(self.relays)

    async def aclose(self):
        for relay in self.relays.values():
            await relay.aclose()


@lru_cache()
def get_relay_registry() -> RelayRegistry:
    """Returns the process-wide registry; overridden in tests through FastAPI dependency overrides."""
    return RelayRegistry()
