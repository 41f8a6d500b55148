"""Cluster-wide VM inventory via pvesh."""

import json
import logging
from typing import Any, Dict, List, Set

from pvefleet.commands import Command
from pvefleet.exceptions import ClusterQueryError
from pvefleet.runner import CommandRunner

logger = logging.getLogger(__name__)

RESOURCES_QUERY = Command(["pvesh", "get", "/cluster/resources", "--type", "vm", "--output-format", "json"])


class ClusterInventory:
    """Queries /cluster/resources so offline nodes' VMs are included too."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def resources(self) -> List[Dict[str, Any]]:
        output = self.runner.capture(RESOURCES_QUERY).strip()
        if not output:
            return []
        try:
            resources = json.loads(output)
        except ValueError as e:
            raise ClusterQueryError(f"Unparseable output from '{RESOURCES_QUERY.display()}': {e}") from e
        if not isinstance(resources, list):
            raise ClusterQueryError(f"Expected a list from '{RESOURCES_QUERY.display()}', got {type(resources).__name__}")
        return resources

    def vm_ids(self) -> Set[int]:
        """Return every VM/template id known to the cluster."""
        used = set()
        for resource in self.resources():
            if isinstance(resource, dict) and "vmid" in resource:
                used.add(int(resource["vmid"]))
        logger.debug(f"Cluster VM ids: {sorted(used)}")
        return used
