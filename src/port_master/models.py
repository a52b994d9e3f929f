"""Data models for port assignments."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

MIN_PORT = 1
MAX_PORT = 65535


class PortRange(BaseModel):
    """An inclusive interval of port numbers."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(..., ge=MIN_PORT, le=MAX_PORT, description="First port (inclusive)")
    end: int = Field(..., ge=MIN_PORT, le=MAX_PORT, description="Last port (inclusive)")

    @model_validator(mode="after")
    def _check_order(self) -> "PortRange":
        if self.start > self.end:
            raise ValueError(f"start ({self.start}) must not exceed end ({self.end})")
        return self

    def __contains__(self, port: object) -> bool:
        return isinstance(port, int) and self.start <= port <= self.end

    def ports(self) -> range:
        """Ports of the interval in ascending order."""
        return range(self.start, self.end + 1)

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class PortAssignment(BaseModel):
    """A persisted binding of (directory, port type) to a port."""

    id: int = Field(..., gt=0, description="Surrogate key assigned by the database")
    directory: str = Field(..., min_length=1, description="Absolute project directory")
    port_type: str = Field(..., min_length=1, description="Normalized service type")
    port: int = Field(..., ge=MIN_PORT, le=MAX_PORT, description="Assigned port")
    description: str | None = Field(default=None, description="Optional free-text note")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation time")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update time")


class PortDisplayInfo(BaseModel):
    """One row of the ``list`` output."""

    port: int
    type: str
    directory: str = Field(..., description="Basename, or the full path in verbose mode")
    full_path: str = Field(..., serialization_alias="fullPath")
    description: str | None = None


class ProjectPort(BaseModel):
    """One port of a project as shown by ``info``."""

    type: str
    port: int
    description: str | None = None


class ProjectInfo(BaseModel):
    """All ports assigned to one project directory."""

    directory: str = Field(..., description="Directory basename")
    full_path: str = Field(..., serialization_alias="fullPath")
    ports: list[ProjectPort] = Field(default_factory=list)
