"""Configuration for PM Command Center."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration."""

    storage_path: str = Field(default="workspace.yaml")
    latency_scale: float = Field(default=1.0, ge=0)  # 0 disables simulated backend latency
    response_delay: float = Field(default=0.8, ge=0)  # Seconds before the assistant replies
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)
