from .loader import load_config
from .models import (
    AuditConfig,
    EngineConfig,
    RegistryConfig,
    RolegateConfig,
)

__all__ = [
    "AuditConfig",
    "EngineConfig",
    "RegistryConfig",
    "RolegateConfig",
    "load_config",
]
