"""
Token resolution.

Explicitly configured tokens win. Without any, tokens are read from the
host labels published by the Rancher metadata service:

    logentries-token         Base token
    logentries-token-logs    Token specifically for log output
    logentries-token-stats   Token specifically for Docker Stats output
    logentries-token-events  Token specifically for Docker Events output
"""

from typing import Any, Dict, Optional

import requests

from docker_logentries.core.config import Settings
from docker_logentries.core.exceptions import MetadataUnparseableError, MetadataUnreachableError
from docker_logentries.core.logging import get_logger


logger = get_logger(__name__)

LABELS_API = "http://rancher-metadata/2015-12-19/self/host/labels"

BASE_LABEL = "logentries-token"
CHANNEL_LABELS = {
    "logstoken": "logentries-token-logs",
    "statstoken": "logentries-token-stats",
    "eventstoken": "logentries-token-events",
}


def resolve_tokens(
    settings: Settings,
    session: Optional[requests.Session] = None,
    labels_api: str = LABELS_API,
    timeout: float = 10,
) -> Settings:
    """
    Return settings with the three channel tokens filled in.
    
    Raises:
        MetadataLookupError: If the metadata service is needed and cannot
            be reached or returns something other than a JSON object
    """
    if settings.has_explicit_tokens:
        logger.info("Using provided tokens ... ")
        return settings.model_copy(update={
            channel: getattr(settings, channel) or settings.token or ""
            for channel in CHANNEL_LABELS
        })
    
    logger.info("Retrieving tokens from host labels ...")
    labels = fetch_host_labels(session=session, labels_api=labels_api, timeout=timeout)
    return settings.model_copy(update=tokens_from_labels(labels))


def fetch_host_labels(
    session: Optional[requests.Session] = None,
    labels_api: str = LABELS_API,
    timeout: float = 10,
) -> Dict[str, Any]:
    """Fetch this host's labels from the metadata service"""
    if session is None:
        with requests.Session() as http:
            return _get_labels(http, labels_api, timeout)
    return _get_labels(session, labels_api, timeout)


def _get_labels(http: requests.Session, labels_api: str, timeout: float) -> Dict[str, Any]:
    try:
        response = http.get(labels_api, headers={"Accept": "application/json"}, timeout=timeout)
    except requests.RequestException as e:
        raise MetadataUnreachableError(labels_api, str(e)) from e
    
    if response.status_code != 200:
        raise MetadataUnreachableError(labels_api, f"HTTP {response.status_code}")
    
    try:
        labels = response.json()
    except ValueError as e:
        raise MetadataUnparseableError(labels_api) from e
    
    if not isinstance(labels, dict):
        raise MetadataUnparseableError(labels_api)
    
    return labels


def tokens_from_labels(labels: Dict[str, Any]) -> Dict[str, str]:
    """Channel tokens from host labels; label values are used as strings"""
    base = labels.get(BASE_LABEL) or ""
    return {
        channel: str(labels.get(label) or base)
        for channel, label in CHANNEL_LABELS.items()
    }
