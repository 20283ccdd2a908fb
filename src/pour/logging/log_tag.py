from enum import Enum
from typing import Any, Dict, List, Optional


COLOR_RESET = "\033[0m"
COLOR_GREEN = "\033[32m"
COLOR_YELLOW = "\033[33m"
COLOR_BLUE = "\033[34m"
COLOR_PURPLE = "\033[35m"
COLOR_CYAN = "\033[36m"
COLOR_WHITE = "\033[37m"
COLOR_RED = "\033[31m"


TAG_SUCCESS = 1
TAG_WARNING = 2
TAG_ERROR = 3


class LogTag(Enum):
    """
    Classification label attached to a log event.

    Each member carries the stable numeric id the collector indexes on,
    the display color used by dashboards, and the ANSI color used for
    console output.
    """

    SUCCESS = (TAG_SUCCESS, "#1c9c3e", "Success", COLOR_GREEN)
    WARNING = (TAG_WARNING, "#c2a525", "Warning", COLOR_YELLOW)
    ERROR = (TAG_ERROR, "#9c1f1f", "Error", COLOR_RED)

    def __init__(self, tag_id: int, color: str, display_name: str, ansi: str):
        self.tag_id = tag_id
        self.color = color
        self.display_name = display_name
        self.ansi = ansi

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.tag_id,
            "color": self.color,
            "name": self.display_name,
        }


# Wire form of a missing tag.
EMPTY_TAG: Dict[str, Any] = {"index": 0, "color": "", "name": ""}


def resolve_tag(tag_id: Optional[int]) -> LogTag:
    """
    Map a 1-based tag id onto the catalog.

    Ids that are missing, non-positive or beyond the catalog size
    resolve to the first entry (Success).
    """
    if tag_id is None or tag_id <= 0 or tag_id > len(LogTag):
        return LogTag.SUCCESS

    for tag in LogTag:
        if tag.tag_id == tag_id:
            return tag
    return LogTag.SUCCESS


def system_default_tags() -> List[Dict[str, Any]]:
    """
    Catalog in wire form, for collectors that seed their tag table
    from the client library.
    """
    return [tag.to_dict() for tag in LogTag]
