from dataclasses import dataclass


@dataclass(frozen=True)
class AvailableModel:
    """
    Model currently served by the network

    Attributes:
        id: model id to put in ProjectParams.model_id
        name: display name
        worker_count: workers serving this model right now
    """
    id: str
    name: str
    worker_count: int

    @classmethod
    def from_swarm(cls, model_id: str, worker_count: int) -> "AvailableModel":
        return cls(id=model_id, name=model_id.replace("-", " "), worker_count=int(worker_count))
