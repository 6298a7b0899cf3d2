"""
Document annotation routes (the emulated /v1/document API).
"""
import logging

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from services.document_annotation import annotate_document
from services.document_options import validate_options
from services.errors import JSON_MEDIA_TYPE, JSONP_MEDIA_TYPE, XML_MEDIA_TYPE
from services.text_locations import TextLocationExtractor, get_default_extractor

router = APIRouter()
logger = logging.getLogger(__name__)


async def _request_params(request: Request) -> dict:
    """Query parameters merged with form fields; form fields win."""
    params = dict(request.query_params)
    if request.method == "POST":
        form = await request.form()
        params.update({key: value for key, value in form.items() if isinstance(value, str)})
    return params


def _media_type(output_type: str, callback) -> str:
    if output_type == "json":
        return JSONP_MEDIA_TYPE if callback else JSON_MEDIA_TYPE
    return XML_MEDIA_TYPE


async def _annotate(request: Request, extractor: TextLocationExtractor) -> Response:
    options = validate_options(await _request_params(request))
    content = await run_in_threadpool(annotate_document, options, extractor)
    return Response(content=content, media_type=_media_type(options.output_type, options.callback))


@router.post("/document")
async def post_document(request: Request, extractor: TextLocationExtractor = Depends(get_default_extractor)):
    """The standard POST form of the annotation API."""
    return await _annotate(request, extractor)


@router.get("/document")
async def get_document(request: Request, extractor: TextLocationExtractor = Depends(get_default_extractor)):
    """Non-standard GET form for JavaScript clients."""
    return await _annotate(request, extractor)
