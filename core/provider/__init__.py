"""Provider Module - HTTP access to the external AI matching provider."""
from core.provider.client import ProviderClient
from core.provider.remote_scorer import RemoteScorer

__all__ = ['ProviderClient', 'RemoteScorer']
