from pydantic import BaseModel


class UploadSession(BaseModel):
    connection_id: str
    uploaded_bytes: int = 0
    total_bytes: int = 0
    progress_percent: int = 0
    # last percent actually queued to the uploader
    last_reported_percent: int | None = None
