"""
Annotate a plain-text document with the places it mentions.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

from domain.models import Envelope
from services.document_options import DocumentOptions
from services.errors import GeodictError, fail
from services.normalizer import places_from_mentions
from services.renderer import render
from services.text_locations import TextLocationExtractor
from settings import settings

logger = logging.getLogger(__name__)


def annotate_document(
    options: DocumentOptions,
    extractor: TextLocationExtractor,
    version: Optional[str] = None,
) -> str:
    """Run extraction over validated ``options`` and render the response body.

    ``processingTime`` covers the extraction step only.
    """
    input_text = options.document_content or ""
    try:
        started = time.perf_counter()
        mentions = extractor.find_locations_in_text(input_text)
        duration = time.perf_counter() - started

        places = places_from_mentions(input_text, mentions)
    except GeodictError as exc:
        # Errors raised below don't know the requested format.
        fail(exc.message, options.output_type, exc.code, options.callback, type(exc))

    logger.debug("Annotated %d characters with %d places in %.4fs", len(input_text), len(places), duration)
    envelope = Envelope(
        processing_time=duration,
        document_length=len(input_text),
        version=version or settings.GEODICT_VERSION,
    )
    return render(places, options.output_type, envelope, options.callback)
