"""
Hive RPC package: JSON-RPC transport with node failover.
"""

from backend_hivewatch.rpc.endpoint_pool import Endpoint, EndpointPool

__all__ = ["Endpoint", "EndpointPool"]
