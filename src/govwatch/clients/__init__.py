from govwatch.clients.rpc import RPC

__all__ = ["RPC"]
