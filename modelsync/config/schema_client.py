from pydantic import BaseModel, Field, AnyHttpUrl
from typing import Optional

from ..util.const import DEFAULTS

class ClientCfg(BaseModel):
    """Connection and session settings for the models server."""
    api_url: AnyHttpUrl = Field(default="http://localhost:8099", description="Server base URL")
    token: Optional[str] = Field(None, description="Bearer token")
    org_id: Optional[str] = Field(None, description="Organization scoping every request")
    is_cloud: bool = Field(False, description="Bound to the hosted backend (no custom providers)")

    plan_id: Optional[str] = Field(None, description="Current plan for plan-level settings")
    branch: str = Field("main", min_length=1)

    request_timeout: float = Field(DEFAULTS["HTTP_TIMEOUT_SEC"], gt=0)
    models_file: Optional[str] = Field(None, description="Overrides the default models file path")
