import html
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from helpers.dependencies import get_oauth, get_token_manager
from helpers.errors import AuditError
from helpers.hubspot_oauth import HubSpotOAuth
from helpers.token_manager import TokenManager

router = APIRouter()
logger = logging.getLogger("oauth")

SUCCESS_HTML = (
    "<h1>Success!</h1><p>Your connection has been saved. "
    "You can now close this tab and return to the application.</p>"
)


@router.get("/install")
async def install(oauth: Annotated[HubSpotOAuth, Depends(get_oauth)]):
    url = oauth.authorize_url()
    logger.info("oauth start redirect_uri=%s", oauth.settings.hubspot_redirect_uri)
    return RedirectResponse(url=url)


@router.get("/oauth-callback", response_class=HTMLResponse)
async def oauth_callback(
    oauth: Annotated[HubSpotOAuth, Depends(get_oauth)],
    tokens: Annotated[TokenManager, Depends(get_token_manager)],
    code: Optional[str] = Query(None),
):
    if not code:
        return HTMLResponse("HubSpot authorization code not found.", status_code=400)

    try:
        token_data = await oauth.exchange_code(code)
        info = await oauth.token_info(token_data.get("access_token") or "")
        hub_id = info.get("hub_id") or info.get("hubId")
        if not hub_id:
            raise AuditError("HubSpot token info did not include a hub_id.")
        await tokens.save_authorization(str(hub_id), token_data)
    except AuditError as e:
        logger.error("oauth callback failed: %s", e)
        return HTMLResponse(f"<h1>Server Error</h1><p>{html.escape(str(e))}</p>", status_code=500)

    logger.info("oauth success portal=%s", hub_id)
    return HTMLResponse(SUCCESS_HTML)
