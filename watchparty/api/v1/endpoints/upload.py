from fastapi import APIRouter, Depends, Header, Request, status

from watchparty.core.config import settings
from watchparty.dependencies.services import get_upload_service
from watchparty.schemas.upload import UploadResponse
from watchparty.services.upload_service import UploadService

router = APIRouter()


def build_public_url(request: Request, stored_name: str) -> str:
    base_url = settings.PUBLIC_BASE_URL or str(request.base_url)
    return f"{base_url.rstrip('/')}/uploads/{stored_name}"


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_200_OK,
)
async def upload_video(
    request: Request,
    filename: str | None = None,
    content_type: str | None = Header(None),
    content_length: str | None = Header(None),
    x_connection_id: str | None = Header(None),
    upload_service: UploadService = Depends(get_upload_service),
):
    """Stream a raw video body to disk.

    Progress goes to the websocket connection named by ``X-Connection-ID``;
    publishing the returned URL to the room is the host's job.
    """
    stored_name = await upload_service.receive(
        request.stream(),
        connection_id=x_connection_id,
        content_type=content_type,
        content_length=content_length,
        filename=filename,
    )
    return UploadResponse(url=build_public_url(request, stored_name))
