from dataclasses import dataclass
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict

from container_monitor.helper import short_id


@dataclass(frozen=True)
class RawContainerRef:
    id: str
    name: str

    @staticmethod
    def from_native(native: Dict[str, Any]) -> "RawContainerRef":
        """Build a ref from an entry of the docker `/containers/json` listing.

        The display name is the first declared name without its leading `/`,
        falling back to the short id when the container has no names.
        """
        container_id = native["Id"]
        names = native.get("Names") or []
        name = names[0].removeprefix("/") if names else short_id(container_id)
        return RawContainerRef(id=container_id, name=name)


class ContainerStat(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    cpu_percent: float
    memory_mb: float

    def __str__(self):
        return (
            f"{self.name}: cpu={self.cpu_percent:.2f}% "
            f"mem={self.memory_mb:.2f}MB"
        )
