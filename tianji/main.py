import uvicorn
from fastapi import FastAPI

from tianji.api.envelope import install_exception_handlers
from tianji.api.routes.astrology import router as astrology_router
from tianji.api.routes.coins import router as coins_router
from tianji.api.routes.health import router as health_router
from tianji.api.routes.internal_billing import router as internal_billing_router
from tianji.api.routes.subscription import router as subscription_router
from tianji.api.routes.user_profile import router as user_profile_router
from tianji.core.config import get_settings
from tianji.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.app_env != "dev")

    app = FastAPI(
        title="Tianji API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    install_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(astrology_router)
    app.include_router(subscription_router)
    app.include_router(coins_router)
    app.include_router(user_profile_router)
    app.include_router(internal_billing_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "tianji.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
