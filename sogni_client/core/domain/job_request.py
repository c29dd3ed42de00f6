"""
Job Request Message

Builds the 'jobRequest' socket payload for a project.
"""
from typing import Any, Dict

from .project import ProjectParams


def create_job_request_message(project_id: str, params: ProjectParams) -> Dict[str, Any]:
    key_frame = {
        "steps": params.steps,
        "guidanceScale": params.guidance,
        "modelID": params.model_id,
        "negativePrompt": params.negative_prompt,
        "positivePrompt": params.positive_prompt,
        "stylePrompt": params.style_prompt,
        "hasStartingImage": False,
        "strengthIsEnabled": False,
    }
    if params.scheduler:
        key_frame["scheduler"] = params.scheduler
    if params.seed is not None:
        key_frame["seed"] = params.seed

    return {
        "keyFrames": [key_frame],
        "previews": params.number_of_previews,
        "numberOfImages": params.number_of_images,
        "disableSafety": params.disable_nsfw_filter,
        "jobID": project_id,
    }
