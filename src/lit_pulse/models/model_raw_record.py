"""Raw upstream record model.

A RawRecord is the only place a source-specific response shape is allowed
to live. The normalizer consumes it once; nothing downstream reads
``payload`` again.
"""

from typing import Any

from pydantic import BaseModel


class RawRecord(BaseModel):
    """One source-specific response fragment."""

    source: str  # "pubmed" or "scholar"
    query_label: str
    payload: Any = None
