from .client import BitcoinClient

__all__ = ["BitcoinClient"]
