from fastapi import APIRouter, Depends, HTTPException, Request
from opentelemetry import trace
import logging

from sparqlvis.api.models import (
    EncodingOverrideRequest,
    EncodingOptions,
    EncodingResponse,
    EncodingTransformRequest,
    GraphResponse,
    GraphTransformRequest,
    LoadRequest,
    ProxyStatusResponse,
    TableResponse,
    TransformRequest,
    VisualizerStateResponse,
)
from sparqlvis.config import settings
from sparqlvis.data.result_model import ResultSet
from sparqlvis.data.sample_data import get_sample_data
from sparqlvis.errors import InvalidEncodingError, InvalidResultSetError, SparqlRelayError
from sparqlvis.services.sparql_service import SparqlRelay, get_sparql_relay
from sparqlvis.services.visualizer_service import VisualizerController
from sparqlvis.util.encoding_engine import EncodingOverrides, infer_encoding
from sparqlvis.util.graph_util import GraphConfig, build_graph
from sparqlvis.util.sparql_result_processor import flatten
from sparqlvis.util.status_message import StatusMessage
from sparqlvis.util.vega_util import VegaUtil

proxy_router = APIRouter()
router = APIRouter(prefix="/api/v1")
tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

_controller: VisualizerController | None = None


def get_visualizer_controller() -> VisualizerController:
    global _controller
    if _controller is None:
        _controller = VisualizerController()
    return _controller


def _parse_result(payload) -> ResultSet:
    try:
        return ResultSet.from_sparql_json(payload)
    except InvalidResultSetError as e:
        logger.warning(f"Rejected result set: {e}")
        raise HTTPException(status_code=422, detail=StatusMessage.invalid_result(str(e)))


def _overrides(options: EncodingOptions) -> EncodingOverrides:
    return EncodingOverrides(
        x_field=options.x_field,
        y_field=options.y_field,
        color_field=options.color_field,
        aggregate=options.aggregate,
    )


@proxy_router.get("/proxy-status", response_model=ProxyStatusResponse)
async def proxy_status():
    return ProxyStatusResponse(status=StatusMessage.proxy_running())


@proxy_router.api_route("/sparql-proxy", methods=["GET", "POST"])
async def sparql_proxy(request: Request, relay: SparqlRelay = Depends(get_sparql_relay)):
    """Forward a query to an endpoint, POST first then GET."""
    params = dict(request.query_params)
    if request.method == "POST":
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            body = await request.json()
            if isinstance(body, dict):
                params.update(body)
        else:
            form = await request.form()
            params.update({k: v for k, v in form.items() if isinstance(v, str)})

    endpoint = params.get("endpoint")
    query = params.get("query")
    if not endpoint or not query:
        raise HTTPException(status_code=400, detail=StatusMessage.missing_parameters())

    with tracer.start_as_current_span("sparql_proxy_endpoint") as span:
        span.set_attribute("endpoint", endpoint)
        try:
            return await relay.execute(endpoint, query)
        except SparqlRelayError as e:
            raise HTTPException(status_code=502, detail={
                "error": StatusMessage.relay_failed(),
                "postError": e.post_error,
                "getError": e.get_error,
            })
        except Exception as e:
            logger.error(f"[Proxy] Unexpected error: {str(e)}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))


@router.get("/sample")
async def sample_data():
    return get_sample_data()


@router.post("/transform/table", response_model=TableResponse)
async def transform_table(request: TransformRequest):
    """Flatten a SPARQL result into table rows."""
    with tracer.start_as_current_span("transform_table_endpoint"):
        result_set = _parse_result(request.result)
        rows = flatten(result_set)
        return TableResponse(
            variables=list(result_set.variables),
            rows=rows,
            row_count=len(rows),
            message=StatusMessage.no_data() if not rows else None,
        )


@router.post("/transform/graph", response_model=GraphResponse)
async def transform_graph(request: GraphTransformRequest):
    """Build a node/edge graph from a SPARQL result."""
    with tracer.start_as_current_span("transform_graph_endpoint"):
        result_set = _parse_result(request.result)
        graph = build_graph(result_set, GraphConfig(
            source_field=request.source_field,
            target_field=request.target_field,
            label_field=request.label_field,
            weight_field=request.weight_field,
        ))
        data = graph.to_dict()
        return GraphResponse(
            nodes=data["nodes"],
            edges=data["edges"],
            fields=data["fields"],
            fallbacks={
                role.value: res.requested
                for role, res in graph.fields.items() if res.fell_back
            },
            message=StatusMessage.no_data() if not graph.nodes else None,
        )


@router.post("/transform/encoding", response_model=EncodingResponse)
async def transform_encoding(request: EncodingTransformRequest):
    """Infer an encoding (or network graph) for a SPARQL result."""
    with tracer.start_as_current_span("transform_encoding_endpoint") as span:
        result_set = _parse_result(request.result)
        rows = flatten(result_set)
        try:
            result = infer_encoding(rows, result_set.variables, request.mark, _overrides(request))
        except InvalidEncodingError as e:
            raise HTTPException(status_code=422, detail=StatusMessage.invalid_encoding(str(e)))

        span.set_attribute("kind", result.kind)
        return EncodingResponse(
            encoding=result.to_dict(),
            vega=VegaUtil.render(result, rows) if request.render else None,
            message=StatusMessage.no_data() if not rows else None,
        )


def _state_response(controller: VisualizerController) -> VisualizerStateResponse:
    return VisualizerStateResponse(**controller.snapshot(), vega=controller.render())


@router.get("/visualizer/state", response_model=VisualizerStateResponse)
async def visualizer_state(controller: VisualizerController = Depends(get_visualizer_controller)):
    return _state_response(controller)


@router.post("/visualizer/load", response_model=VisualizerStateResponse)
async def visualizer_load(request: LoadRequest,
                          controller: VisualizerController = Depends(get_visualizer_controller)):
    """Load a result (inline or fetched, default endpoint if none given) and regenerate the base encoding."""
    endpoint = request.endpoint or settings.DEFAULT_SPARQL_ENDPOINT
    if request.result is None and not request.query:
        raise HTTPException(status_code=400, detail=StatusMessage.missing_parameters())

    try:
        if request.result is not None:
            await controller.load(request.result, request.mark)
        else:
            await controller.load_from_endpoint(endpoint, request.query, request.mark)
    except InvalidResultSetError as e:
        raise HTTPException(status_code=422, detail=StatusMessage.invalid_result(str(e)))
    except InvalidEncodingError as e:
        raise HTTPException(status_code=422, detail=StatusMessage.invalid_encoding(str(e)))
    except SparqlRelayError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"[LOAD] Unexpected error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return _state_response(controller)


@router.post("/visualizer/apply", response_model=VisualizerStateResponse)
async def visualizer_apply(request: EncodingOptions,
                           controller: VisualizerController = Depends(get_visualizer_controller)):
    if not controller.has_data:
        raise HTTPException(status_code=409, detail=StatusMessage.no_visualization())
    try:
        await controller.apply(_overrides(request), request.mark)
    except InvalidEncodingError as e:
        raise HTTPException(status_code=422, detail=StatusMessage.invalid_encoding(str(e)))
    return _state_response(controller)


@router.post("/visualizer/encoding", response_model=VisualizerStateResponse)
async def visualizer_set_encoding(request: EncodingOverrideRequest,
                                  controller: VisualizerController = Depends(get_visualizer_controller)):
    if not controller.has_data:
        raise HTTPException(status_code=409, detail=StatusMessage.no_visualization())
    try:
        await controller.set_encoding(request.encoding)
    except InvalidEncodingError as e:
        raise HTTPException(status_code=422, detail=StatusMessage.invalid_encoding(str(e)))
    return _state_response(controller)


@router.post("/visualizer/reset", response_model=VisualizerStateResponse)
async def visualizer_reset(controller: VisualizerController = Depends(get_visualizer_controller)):
    if not controller.has_data:
        raise HTTPException(status_code=409, detail=StatusMessage.no_visualization())
    await controller.reset()
    return _state_response(controller)


@router.post("/visualizer/restore", response_model=VisualizerStateResponse)
async def visualizer_restore(controller: VisualizerController = Depends(get_visualizer_controller)):
    if not controller.has_data:
        raise HTTPException(status_code=409, detail=StatusMessage.no_visualization())
    await controller.restore_base()
    return _state_response(controller)
