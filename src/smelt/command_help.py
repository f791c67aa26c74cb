from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class CommandHelp:
    """Examples and tips rendered after the standard argparse help."""

    examples: List[Tuple[str, str]] = field(default_factory=list)
    """List of (description, command) tuples showing usage examples."""

    tips: List[str] = field(default_factory=list)


SMELT_COMMAND_HELP = CommandHelp(
    examples=[
        (
            "List every note whose 'publish_to' value mentions blog",
            "smelt -k publish_to -v blog --print ~/notes",
        ),
        (
            "Mirror tagged notes plus their attachment folders into a site tree",
            "smelt -k publish_to -v '^blog$' -i attachment --rsync-to ~/site/content ~/notes",
        ),
        (
            "Preview what a sync would add, update and delete",
            "smelt -k publish_to -v blog -r /mnt/site --dry-run --verbose ~/notes",
        ),
        (
            "Run from a YAML config, mirroring without rsync",
            "smelt --config smelt.yaml --backend local",
        ),
    ],
    tips=[
        "Values are regular expressions matched anywhere in the text; anchor with ^...$ for an exact match.",
        "The attachment pattern is tested against each parent directory's full path.",
        "Staging uses hard links; set --staging-dir on the source filesystem if /tmp is elsewhere.",
        "Sync mode deletes destination files that are no longer selected.",
    ],
)
