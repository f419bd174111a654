#Marks routing.providers as a package.
#Re-exports the adapters and builds the ordered provider list from a RoutingPolicy,
#so the resolver and session never import adapter modules directly.

import logging
from typing import List, Optional

from routing.policy import RoutingPolicy, default_routing_policy

from .base import RouteProviderClient, normalize_summary
from .ors_client import ORSClient
from .osrm_client import OSRMClient

logger = logging.getLogger(__name__)


def build_providers(policy: Optional[RoutingPolicy] = None) -> List[RouteProviderClient]:
    """
    Build providers in policy.provider_order.
    ORS is skipped (with a warning) when no usable API key is configured.
    """
    policy = policy or default_routing_policy()
    providers: List[RouteProviderClient] = []

    for provider_id in policy.provider_order:
        if provider_id == "osrm":
            providers.append(OSRMClient(policy.osrm_base_url, timeout=policy.request_timeout_s))
        elif provider_id == "ors":
            try:
                providers.append(
                    ORSClient(policy.ors_api_key, policy.ors_base_url, timeout=policy.request_timeout_s)
                )
            except ValueError as e:
                logger.warning(f"Skipping ORS provider: {e}")
        else:
            raise ValueError(f"Unknown routing provider: {provider_id!r}")

    return providers


__all__ = [
    "RouteProviderClient",
    "ORSClient",
    "OSRMClient",
    "build_providers",
    "normalize_summary",
]
