from pydantic import BaseModel, ConfigDict, Field, RootModel
from typing import Any, Optional, Dict, Union


class SocketPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# --- Job Event Payloads ---
class JobStatePayload(SocketPayload):
    # queued | jobCompleted | initiatingModel | jobStarted
    type: str
    job_id: str = Field(alias="jobID")
    img_id: Optional[str] = Field(default=None, alias="imgID")
    queue_position: Optional[int] = Field(default=None, alias="queuePosition")
    worker_name: Optional[str] = Field(default=None, alias="workerName")


class JobProgressPayload(SocketPayload):
    job_id: str = Field(alias="jobID")
    img_id: str = Field(alias="imgID")
    has_image: bool = Field(default=False, alias="hasImage")
    step: int
    step_count: int = Field(alias="stepCount")


class JobResultPayload(SocketPayload):
    job_id: str = Field(alias="jobID")
    img_id: str = Field(alias="imgID")
    performed_step_count: Optional[int] = Field(default=None, alias="performedStepCount")
    last_seed: Optional[Union[int, str]] = Field(default=None, alias="lastSeed")
    user_canceled: bool = Field(default=False, alias="userCanceled")
    triggered_nsfw_filter: bool = Field(default=False, alias="triggeredNSFWFilter")


class JobErrorPayload(SocketPayload):
    job_id: str = Field(alias="jobID")
    img_id: Optional[str] = Field(default=None, alias="imgID")
    is_from_worker: bool = Field(default=False, alias="isFromWorker")
    error_message: Optional[str] = ""
    # Numeric code or symbolic reason, anything else maps to the unknown code
    error: Any = None


# --- Model Availability ---
class SwarmModelsPayload(RootModel[Dict[str, int]]):
    pass


# --- REST Payloads ---
class DownloadUrlData(SocketPayload):
    download_url: str = Field(alias="downloadUrl")
