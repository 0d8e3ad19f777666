"""Base model for persisted records.

Persisted layouts use camelCase keys (``isActive``, ``lastAccessed``) so the
stored documents stay readable by the browser-side collaborators.  Python
code uses snake_case attributes; ``to_store`` produces the stored form.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StoredModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_store(self) -> dict[str, Any]:
        """Dump to the JSON-compatible, camelCase form written to the store."""
        return self.model_dump(mode="json", by_alias=True)
