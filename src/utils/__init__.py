"""
Utility modules for carrier dispatch
"""
from .config_loader import DispatchConfig, load_dispatch_config

__all__ = [
    'DispatchConfig',
    'load_dispatch_config',
]
