from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from fallback_proxy.fallback.rules import FallbackRule


class ModelFallbacksResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_fallbacks: List[FallbackRule] = Field(default_factory=list, alias="model-fallbacks")
    model_fallback_depth: int = Field(alias="model-fallback-depth")


class ModelFallbacksUpdateRequest(BaseModel):
    """Body of a full replacement. A missing depth means the default."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_fallbacks: List[FallbackRule] = Field(default_factory=list, alias="model-fallbacks")
    model_fallback_depth: Optional[int] = Field(default=None, alias="model-fallback-depth")


class FallbackResolution(BaseModel):
    model: str
    fallback: Optional[str] = None
    chain: List[str] = Field(default_factory=list)
    depth: int


class AvailableModelsResponse(BaseModel):
    models: List[str] = Field(default_factory=list)


class StatusResponse(BaseModel):
    status: str = "ok"
    message: Optional[str] = None
    removed: Optional[int] = None
