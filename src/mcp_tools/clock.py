"""Clock tool: reports the current server time."""

from datetime import datetime, timezone
from typing import Any, Optional

from shared.models import AuthenticatedIdentity
from mcp_tools.base import ToolCapability


class GetCurrentTimeTool(ToolCapability):
    """Returns the current server time in UTC."""

    @property
    def name(self) -> str:
        return "get_current_time"

    @property
    def description(self) -> str:
        return "Returns the current server time as an ISO 8601 string."

    async def execute(
        self,
        arguments: Optional[Any],
        identity: AuthenticatedIdentity
    ) -> dict[str, Any]:
        return {"current_time": datetime.now(timezone.utc).isoformat()}
