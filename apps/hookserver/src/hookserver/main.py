import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from repodata.cache import CacheStore, build_cache
from repodata.clients import GitHubContentClient
from repodata.provider import GitHubDataProvider
from repodata.webhook import WebhookInvalidator

from .config import api_settings, cache_settings, data_settings
from .logger import logger
from .routes.api import entity_api
from .routes.webhook import webhook_router

uptime_start = time.time()


def create_app(
    provider: Optional[GitHubDataProvider] = None,
    cache: Optional[CacheStore] = None,
) -> FastAPI:
    """
    Build the Hookserver application.

    The provider and the webhook invalidator share one cache so webhook evictions are
    seen by the next provider read. Both default to instances built from settings.
    """
    try:
        if provider is None:
            cache = cache or build_cache(cache_settings)
            provider = GitHubDataProvider(
                GitHubContentClient(data_settings), cache, data_settings
            )
        invalidator = WebhookInvalidator(provider.settings, provider.cache)

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            logger.info(
                f"Serving {provider.settings.full_name}@{provider.settings.branch}, "
                f"webhook {'enabled' if provider.settings.webhook_enabled else 'disabled'}"
            )
            yield
            provider.client.close()
            logger.info("Hookserver stopped.")

        app = FastAPI(
            title="Hookserver API",
            description="Webhook cache invalidation and JSON entity API for the GitHub data repository",
            version="1.0.0",
            lifespan=lifespan,
        )
        # CORS
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        app.state.provider = provider
        app.state.invalidator = invalidator

        app.include_router(webhook_router)
        app.include_router(entity_api)
        logger.info("Hookserver API initialized.")

        @app.get("/health")
        async def health_check():
            """Health check endpoint."""
            return {"status": "ok", "uptime_seconds": time.time() - uptime_start}

        return app

    except KeyboardInterrupt:
        logger.info("Shutting down Hookserver API due to keyboard interrupt.")
        raise

    except Exception as e:
        logger.exception(
            f"Failed to initialize Hookserver API: {e}", exc_info=True, stack_info=True
        )
        raise e


app: FastAPI = create_app()


def entry():
    """Entry point for running the Hookserver application."""
    import uvicorn

    uvicorn.run(
        "hookserver.main:app",
        host=api_settings.host,
        port=api_settings.port,
        log_level=api_settings.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    entry()
