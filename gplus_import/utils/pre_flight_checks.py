from typing import Any, Dict

import requests

from .errors import GPlusImportError


class PreFlightCheckError(GPlusImportError):
    """Custom exception for pre-flight check failures."""
    pass


def run_forum_pre_flight_checks(config: Dict[str, Any]) -> None:
    """
    Verifies that the forum is reachable with the configured API key before
    a live import creates anything.

    Args:
        config: The application configuration dictionary.

    Raises:
        PreFlightCheckError: If any check fails.
    """
    print("[INFO] Running pre-flight checks...")

    forum = config.get("forum", {})
    api_key = forum.get("api_key")
    base_url = (forum.get("base_url") or "").rstrip("/")

    if not base_url:
        raise PreFlightCheckError("Forum base URL not found in the configuration file.")
    if not api_key:
        raise PreFlightCheckError("Forum API key not found in the configuration file.")

    headers = {
        "Api-Key": api_key,
        "Api-Username": forum.get("api_username", "system"),
    }

    # Check 1: the key is valid and has admin scope
    try:
        response = requests.get(f"{base_url}/admin/users/list/active.json", headers=headers, timeout=10)
        response.raise_for_status()
    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code in (401, 403):
            raise PreFlightCheckError("The forum API key is invalid or lacks admin scope.")
        raise PreFlightCheckError(f"Unexpected error checking the forum users API: {e}")
    except requests.RequestException as e:
        raise PreFlightCheckError(f"Network error connecting to the forum: {e}")

    # Check 2: tagging must be enabled for global and category tags
    try:
        response = requests.get(f"{base_url}/site.json", headers=headers, timeout=10)
        response.raise_for_status()
    except requests.RequestException as e:
        raise PreFlightCheckError(f"Unexpected error reading the forum site settings: {e}")
    if config.get("import", {}).get("global_tags") and not response.json().get("can_tag_topics", True):
        raise PreFlightCheckError("Tagging is disabled on the forum but global tags are configured.")

    print("[INFO] Pre-flight checks passed successfully.")
