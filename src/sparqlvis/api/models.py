from pydantic import BaseModel, Field
from typing import Optional, Any

class TransformRequest(BaseModel):
    result: Any = Field(..., description="SPARQL JSON result ({head, results})")

class GraphTransformRequest(TransformRequest):
    source_field: Optional[str] = None
    target_field: Optional[str] = None
    label_field: Optional[str] = None
    weight_field: Optional[str] = None

class EncodingOptions(BaseModel):
    mark: Optional[str] = None
    x_field: Optional[str] = None
    y_field: Optional[str] = None
    color_field: Optional[str] = None
    aggregate: Optional[str] = None

class EncodingTransformRequest(TransformRequest, EncodingOptions):
    render: bool = Field(False, description="Also return the full Vega/Vega-Lite document")

class LoadRequest(BaseModel):
    result: Any = Field(None, description="SPARQL JSON result; omit to fetch from endpoint")
    endpoint: Optional[str] = None
    query: Optional[str] = None
    mark: Optional[str] = None

class EncodingOverrideRequest(BaseModel):
    encoding: Optional[dict[str, Any]] = Field(None, description="null resets to the adaptive encoding")

class TableResponse(BaseModel):
    variables: list[str]
    rows: list[dict[str, Any]]
    row_count: int
    message: Optional[str] = None

class GraphResponse(BaseModel):
    nodes: list[dict[str, Any]]
    edges: list[dict[str, Any]]
    fields: dict[str, Optional[str]] = {}
    fallbacks: dict[str, str] = {}
    message: Optional[str] = None

class EncodingResponse(BaseModel):
    encoding: dict[str, Any]
    vega: Optional[dict[str, Any]] = None
    message: Optional[str] = None

class VisualizerStateResponse(BaseModel):
    has_data: bool
    fields: list[str]
    mark: str
    row_count: int
    current: Optional[dict[str, Any]] = None
    base: Optional[dict[str, Any]] = None
    vega: Optional[dict[str, Any]] = None

class ProxyStatusResponse(BaseModel):
    status: str
