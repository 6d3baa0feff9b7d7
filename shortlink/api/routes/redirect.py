"""URL redirection endpoint with access counting."""

from fastapi import APIRouter, Depends, HTTPException, status
from starlette.responses import RedirectResponse

from shortlink.api.dependencies import get_access_service
from shortlink.services.accessor import AccessService
from shortlink.services.exceptions import StorageError

router = APIRouter(tags=["redirect"])


@router.get(
    "/{short_code}",
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND,
    responses={404: {"description": "Short URL not found"}},
)
async def redirect_to_original_url(
    short_code: str,
    access_service: AccessService = Depends(get_access_service),
):
    """Redirect to the original URL and count the access.

    The store commits the access itself.
    """
    try:
        target_url = await access_service.resolve_and_record(short_code)
    except StorageError:
        raise HTTPException(status_code=500, detail="Internal server error")

    if target_url is None:
        raise HTTPException(status_code=404, detail="Short URL not found")

    return RedirectResponse(url=target_url, status_code=status.HTTP_302_FOUND)
