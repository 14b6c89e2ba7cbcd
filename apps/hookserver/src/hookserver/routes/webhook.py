# region Imports
from typing import Optional

from fastapi import APIRouter, Header, Request
from fastapi.responses import JSONResponse

from repodata.webhook import WebhookInvalidator

from ..logger import logger

_logger = logger.getChild("webhook")

# endregion
# region Routes

webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/github")
async def github_webhook(
    request: Request,
    x_github_event: Optional[str] = Header(None),
    x_github_delivery: Optional[str] = Header(None),
    x_hub_signature_256: Optional[str] = Header(None),
) -> JSONResponse:
    """Evict cached buckets for files changed by a push to the data repository."""
    invalidator: WebhookInvalidator = request.app.state.invalidator
    body = await request.body()
    result = invalidator.handle(
        x_github_event, x_github_delivery, body, x_hub_signature_256
    )
    if result.status_code >= 400:
        _logger.warning(
            f"Rejected delivery {x_github_delivery}: {result.status_code} {result.body}"
        )
    return JSONResponse(status_code=result.status_code, content=result.body)


# endregion
