"""Configuration and provider endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from reelpost.api.dependencies import get_runtime
from reelpost.runtime import Runtime

router = APIRouter(prefix="/api/v1", tags=["settings"])


class ConfigValue(BaseModel):
    value: str


@router.get("/config")
def get_all_config(runtime: Runtime = Depends(get_runtime)) -> dict[str, str]:
    return runtime.config.get_all()


@router.get("/config/{key}")
def get_config(key: str, runtime: Runtime = Depends(get_runtime)):
    runtime.config.check_key(key)
    return {"key": key, "value": runtime.config.get(key)}


@router.put("/config/{key}")
def set_config(key: str, body: ConfigValue, runtime: Runtime = Depends(get_runtime)):
    runtime.config.set(key, body.value)
    return {"key": key, "value": runtime.config.get(key)}


@router.get("/providers")
def list_providers(runtime: Runtime = Depends(get_runtime)):
    """Registered providers per kind and the active one for each."""
    available = runtime.registry.list_all_providers()
    return {
        kind: {"available": names, "active": runtime.registry.active_name(kind)}
        for kind, names in available.items()
    }
