from fastapi import Request

from portal_api.gateway import StorageGateway


def get_gateway(request: Request) -> StorageGateway:
    """Storage gateway dependency, built once by ``create_app``."""
    return request.app.state.gateway
