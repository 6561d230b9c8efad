from fastapi import APIRouter

from routers import gateway
from utils.router import include_router


def test_gateway_modules_mounted_in_name_order():
    router = APIRouter()

    mounted = include_router(gateway, router)

    assert mounted == [
        "routers.gateway.image_proxy",
        "routers.gateway.relay",
        "routers.gateway.upload",
    ]
    assert mounted == gateway.mounted_modules


def test_every_gateway_route_registered():
    paths = {route.path for route in gateway.router.routes}

    assert {"/", "/relay", "/image-proxy"} <= paths
