from pydantic import BaseModel, Field
from typing import Literal


class EngineConfig(BaseModel):
    seed_system_roles: bool = True
    bulk_workers: int = Field(default=4, gt=0)
    bulk_parallel_threshold: int = Field(default=32, gt=0)


class RegistryConfig(BaseModel):
    reject_role_cycles: bool = True
    write_timeout: float = Field(default=5.0, gt=0)


class AuditConfig(BaseModel):
    mode: Literal["all", "denials", "off"] = "denials"
    max_pending: int = Field(default=1000, gt=0)


class RolegateConfig(BaseModel):
    engine: EngineConfig = Field(default_factory=EngineConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    policy_files: list[str] = Field(default_factory=list)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
