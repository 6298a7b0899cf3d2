"""
Option handling for the document annotation endpoint.

Only a subset of the emulated API is implemented, so options are checked up
front and anything unsupported is rejected before any work begins.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from services.errors import MissingInput, UnsupportedOption, check_callback, fail

SUPPORTED_LANGUAGE = "en-US"
SUPPORTED_OUTPUT_TYPES = ("xml", "json")
SUPPORTED_DOCUMENT_TYPE = "text/plain"


class DocumentOptions(BaseModel):
    """Every option the endpoint recognizes, with the emulated API's defaults.

    ``autoDisambiguate``, ``focusWoeId``, ``confidence``, ``characterLimit``,
    ``documentTitle`` and ``appid`` are accepted for compatibility but unused.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    input_language: str = Field("en-US", alias="inputLanguage")
    output_type: str = Field("xml", alias="outputType")
    callback: Optional[str] = None
    document_content: Optional[str] = Field(None, alias="documentContent")
    document_title: Optional[str] = Field(None, alias="documentTitle")
    document_url: Optional[str] = Field(None, alias="documentURL")
    document_type: str = Field("text/plain", alias="documentType")
    auto_disambiguate: Any = Field(True, alias="autoDisambiguate")
    focus_woe_id: Optional[str] = Field(None, alias="focusWoeId")
    confidence: str = "8"
    character_limit: Optional[str] = Field(None, alias="characterLimit")
    app_id: Optional[str] = Field(None, alias="appid")


def validate_options(params: Mapping[str, Any]) -> DocumentOptions:
    """Build ``DocumentOptions`` from raw request parameters or fail.

    Rules are checked in order and the first failing one wins: callback name,
    language, output type, missing content, document URL, document type.
    """
    params = dict(params)
    # The original server read this spelling; keep accepting it.
    if "character_limit" in params and "characterLimit" not in params:
        params["characterLimit"] = params.pop("character_limit")
    options = DocumentOptions.model_validate(params)
    output_type = options.output_type
    callback = options.callback
    check_callback(callback, output_type)

    if options.input_language != SUPPORTED_LANGUAGE:
        fail(
            f'Unsupported inputLanguage: "{options.input_language}"',
            output_type,
            500,
            callback,
            UnsupportedOption,
        )

    if output_type not in SUPPORTED_OUTPUT_TYPES:
        fail(f'Unsupported outputType: "{output_type}"', output_type, 500, callback, UnsupportedOption)

    if options.document_content is None and options.document_url is None:
        fail(
            "You must specify either a documentContent or a documentURL parameter",
            output_type,
            500,
            callback,
            MissingInput,
        )

    if options.document_url is not None:
        fail(
            "The documentURL method of grabbing content is not yet supported",
            output_type,
            500,
            callback,
            UnsupportedOption,
        )

    if options.document_type != SUPPORTED_DOCUMENT_TYPE:
        fail(
            f'Unsupported documentType: "{options.document_type}"',
            output_type,
            500,
            callback,
            UnsupportedOption,
        )

    return options
