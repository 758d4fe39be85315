from textwrap import dedent
import logging
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from portal_api.errors import (
    StorageError,
    handle_broad_exceptions,
    handle_pydantic_validation_errors,
    handle_storage_errors,
)
from portal_api.gateway import StorageGateway
from portal_api.logging_config import configure_logging
from portal_api.routers.contracts import router as contracts_router
from portal_api.routers.customers import router as customers_router
from portal_api.routers.health import router as health_router
from portal_api.routers.orders import router as orders_router
from portal_api.routers.products import router as products_router
from portal_api.routers.students import router as students_router
from portal_api.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None,
               gateway: Optional[StorageGateway] = None) -> FastAPI:
    """
    Create a FastAPI application.

    The storage gateway is built here, once, unless one is passed in. A
    provisioning failure propagates and the app is not created.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Portal API",
        summary="Customers, products, orders, contracts and student marks",
        version="v1",
        description=dedent(
            """\
        | Area | Storage |
        | --- | --- |
        | Customers, products, students | record tables |
        | Product images, student photos | blob containers |
        | Orders | order-processing queue |
        | Contracts | contracts file share |
        """
        ),
        docs_url="/",
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    logger.info("Building storage gateway")
    app.state.gateway = gateway or StorageGateway.from_settings(settings)

    app.include_router(customers_router, prefix="/v1", tags=["customers"])
    app.include_router(products_router, prefix="/v1", tags=["products"])
    app.include_router(orders_router, prefix="/v1", tags=["orders"])
    app.include_router(contracts_router, prefix="/v1", tags=["contracts"])
    app.include_router(students_router, prefix="/v1", tags=["students"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(
        exc_class_or_status_code=StorageError,
        handler=handle_storage_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
