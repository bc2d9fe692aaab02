"""Static field enrichment applied to every record before filtering."""

from types import MappingProxyType
from typing import Any, Dict, Mapping


class Enricher:
    """Merges a fixed set of key/value pairs into every record"""
    
    def __init__(self, fields: Mapping[str, Any]):
        # Private read-only copy; the caller's mapping may change later
        self._fields = MappingProxyType(dict(fields))
    
    @property
    def fields(self) -> Mapping[str, Any]:
        return self._fields
    
    def apply(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Return a copy of ``record`` with the enrichment fields merged in.
        
        Enrichment wins over a same-named field already on the record; the
        record's own key order is kept and new keys are appended.
        """
        merged = dict(record)
        merged.update(self._fields)
        return merged
