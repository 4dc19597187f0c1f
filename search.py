"""
Search value shared by the list endpoints.

A search is a `{scope, query}` pair: `scope` names the field to look in
(blank means every searchable field) and `query` is the text to look for.
"""

import re
from typing import Any, Dict, Sequence

from fastapi import HTTPException, Query
from pydantic import BaseModel


class SearchQuery(BaseModel):
    scope: str = ""
    query: str = ""

    @property
    def empty(self) -> bool:
        return not self.scope and not self.query

    def reset(self) -> "SearchQuery":
        """Clear the query text but keep the selected scope."""
        return self.model_copy(update={"query": ""})

    def to_filter(self, fields: Sequence[str]) -> Dict[str, Any]:
        scope = self.scope.strip()
        if scope and scope not in fields:
            raise HTTPException(status_code=400, detail=f"Unknown search scope '{scope}'")

        text = self.query.strip()
        if not text:
            return {}

        pattern = {"$regex": re.escape(text), "$options": "i"}
        if scope:
            return {scope: pattern}
        return {"$or": [{name: pattern} for name in fields]}


def search_params(
    scope: str = Query("", description="Field to search in; blank searches all"),
    query: str = Query("", description="Text to look for"),
) -> SearchQuery:
    return SearchQuery(scope=scope, query=query)
