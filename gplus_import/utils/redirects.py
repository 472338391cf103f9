"""
Generation of the import map CSV.

The :func:`generate_import_map_csv` helper writes a CSV file mapping every
imported Google+ post to the forum topic created from it, so that links to the
old posts can be rewritten (or redirected) after the import.
"""

from __future__ import annotations

import csv
import os
from typing import Dict, Iterable


def generate_import_map_csv(
    topics: Iterable[Dict[str, str]], *, out_path: str = "reports/import_map.csv"
) -> str:
    """Generate a CSV mapping Google+ posts to their forum topics.

    Parameters
    ----------
    topics:
        Iterable of dictionaries with ``GooglePostId``, ``GoogleURL`` and
        ``TopicURL`` keys.  ``GoogleURL`` may be empty for posts the exporter
        did not record a URL for.
    out_path:
        Location of the CSV file to be written.  The parent directory is
        created automatically.

    Returns
    -------
    str
        The path of the generated CSV file.
    """
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["GooglePostId", "GoogleURL", "TopicURL"])
        for topic in topics:
            writer.writerow([topic.get("GooglePostId", ""), topic.get("GoogleURL") or "", topic.get("TopicURL", "")])
    return out_path
