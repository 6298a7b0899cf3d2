"""
Batch lookup routes: IP addresses and US street addresses to locations.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from services.batch_input import addresses_list_from_string, ips_list_from_string
from services.batch_lookup import ip2location, street2location
from services.errors import JSON_MEDIA_TYPE, JSONP_MEDIA_TYPE, MissingInput, check_callback, fail, make_json
from services.ip_lookup import IpLocator, get_default_ip_locator
from services.street_geocoder import get_default_street_geocoder

router = APIRouter()
logger = logging.getLogger(__name__)


def _json_response(payload, callback: Optional[str] = None) -> Response:
    media_type = JSONP_MEDIA_TYPE if callback else JSON_MEDIA_TYPE
    return Response(content=make_json(payload, callback), media_type=media_type)


async def _body_text(request: Request) -> str:
    body = await request.body()
    return body.decode("utf-8", errors="replace")


@router.post("/ip2location")
async def post_ip2location(request: Request, locator: IpLocator = Depends(get_default_ip_locator)):
    ips_string = await _body_text(request)
    if not ips_string:
        fail(
            "You need to place the IP addresses as a comma-separated list inside the POST body",
            "json",
            500,
            None,
            MissingInput,
        )
    ips_list = ips_list_from_string(ips_string)
    return _json_response(await run_in_threadpool(ip2location, ips_list, locator))


@router.get("/ip2location/{ips}")
def get_ip2location(
    ips: str,
    callback: Optional[str] = None,
    locator: IpLocator = Depends(get_default_ip_locator),
):
    check_callback(callback)
    ips_list = ips_list_from_string(ips, callback)
    return _json_response(ip2location(ips_list, locator), callback)


@router.post("/street2location")
async def post_street2location(request: Request, geocoder=Depends(get_default_street_geocoder)):
    addresses_string = await _body_text(request)
    if not addresses_string:
        fail(
            "You need to place the street addresses as a JSON-encoded array of strings inside the POST body",
            "json",
            500,
            None,
            MissingInput,
        )
    addresses_list = addresses_list_from_string(addresses_string)
    return _json_response(await run_in_threadpool(street2location, addresses_list, geocoder))


@router.get("/street2location/{ips}")
def get_street2location(
    ips: str,
    addresses: Optional[str] = None,
    callback: Optional[str] = None,
    geocoder=Depends(get_default_street_geocoder),
):
    check_callback(callback)
    # The list comes from the query string; the path segment only selects the route.
    if not addresses:
        fail(
            "You need to place the street addresses as a JSON-encoded array of strings as part of the URL",
            "json",
            500,
            callback,
            MissingInput,
        )
    addresses_list = ips_list_from_string(addresses, callback)
    return _json_response(street2location(addresses_list, geocoder), callback)
