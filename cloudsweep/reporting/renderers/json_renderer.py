"""
JSON Renderer
=============

Buffers a run's events and writes one JSON document when the run
completes. Runs that reached the nuke phase produce a nuke document,
anything else (inspect runs, aborted or dry runs) an inspect document.

Output Structure
----------------
Inspect::

    {
      "timestamp": "2024-01-15T10:30:00+00:00",
      "command": "inspect-aws",
      "query": {...},
      "resources": [
        {"resource_type": "ec2", "region": "us-east-1",
         "identifier": "i-0abc", "nukable": true}
      ],
      "summary": {"total_resources": 1, "nukable": 1, "non_nukable": 0,
                  "general_errors": 0, "by_type": {"ec2": 1},
                  "by_region": {"us-east-1": 1}}
    }

Nuke::

    {
      "timestamp": "...",
      "command": "aws",
      "query": {...},
      "resources": [
        {"resource_type": "ec2", "region": "us-east-1",
         "identifier": "i-0abc", "status": "deleted"}
      ],
      "summary": {"found": 1, "total": 1, "deleted": 1, "failed": 0,
                  "general_errors": 0}
    }

``errors`` lists general errors in both shapes.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, TextIO

from cloudsweep.reporting.events import Complete
from cloudsweep.reporting.renderers.summary import SummaryRenderer

logger = logging.getLogger(__name__)


class JSONRenderer(SummaryRenderer):
    """
    Write the run as a single JSON document on completion.

    Parameters
    ----------
    writer : TextIO
        Stream the document is written to.
    command : str, optional
        Name of the command that produced the run.
    query : dict, optional
        Query parameters echoed into the document.
    indent : int, default=2
        JSON indentation. ``None`` for compact output.
    """

    def __init__(
        self,
        writer: TextIO,
        command: str = "",
        query: Optional[Dict[str, Any]] = None,
        indent: Optional[int] = 2,
    ) -> None:
        super().__init__()
        self.writer = writer
        self.command = command
        self.query = query
        self.indent = indent

    def on_complete(self, event: Complete) -> None:
        document = self.build_document()
        json.dump(document, self.writer, indent=self.indent, default=str)
        self.writer.write("\n")
        self.writer.flush()
        logger.debug("Wrote JSON output with %d resources", len(document["resources"]))

    def build_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "command": self.command,
        }
        if self.query is not None:
            document["query"] = self.query
        if self.nuke_started:
            document["resources"] = self._nuked_resources()
            document["summary"] = self.nuke_summary().to_dict()
        else:
            document["resources"] = self._found_resources()
            document["summary"] = self.inspect_summary().to_dict()
        document["errors"] = [
            {
                "resource_type": e.resource_type,
                "description": e.description,
                "error": e.error,
            }
            for e in self.errors
        ]
        return document

    def _found_resources(self) -> List[Dict[str, Any]]:
        resources = []
        for found in self.found:
            entry: Dict[str, Any] = {
                "resource_type": found.resource_type,
                "region": found.region,
                "identifier": found.identifier,
                "nukable": found.nukable,
            }
            if found.reason:
                entry["reason"] = found.reason
            resources.append(entry)
        return resources

    def _nuked_resources(self) -> List[Dict[str, Any]]:
        resources = []
        for deleted in self.deleted:
            entry: Dict[str, Any] = {
                "resource_type": deleted.resource_type,
                "region": deleted.region,
                "identifier": deleted.identifier,
                "status": "deleted" if deleted.success else "failed",
            }
            if deleted.error:
                entry["error"] = deleted.error
            resources.append(entry)
        return resources
