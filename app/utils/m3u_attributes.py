"""
EXTINF attribute extraction

Pulls the display title and the keyed attributes (group-title, tvg-*) out of a
single `#EXTINF` directive line. Extraction is best-effort: a malformed value
only drops that one attribute.
"""
import re


UNKNOWN_TITLE = "Unknown"

# Title follows the first comma that is not inside a quoted attribute value
DIRECTIVE_PATTERN = re.compile(r'#EXTINF:((?:[^,"]|"[^"]*")*),(.*)')
# Fallback for lines with unbalanced quotes
PLAIN_DIRECTIVE_PATTERN = re.compile(r"#EXTINF:([^,]*),(.*)")

GROUP_TITLE_PATTERN = re.compile(r'group-title="([^"]*)"')
TVG_ATTRIBUTE_PATTERN = re.compile(r'tvg-([^=\s"]+)="([^"]*)"')


def extract_title(directive: str) -> str:
    """
    Extract the display title from a directive line.

    Args:
        directive: Full `#EXTINF:<duration> <attrs>,<title>` line

    Returns:
        Title exactly as written, or UNKNOWN_TITLE when the line has no
        `<duration>,<title>` shape
    """
    match = DIRECTIVE_PATTERN.search(directive) or PLAIN_DIRECTIVE_PATTERN.search(directive)
    if match is None:
        return UNKNOWN_TITLE

    return match.group(2)


def extract_attributes(directive: str) -> dict[str, str]:
    """
    Extract keyed attributes from a directive line.

    Recognises `group-title` and any `tvg-<suffix>` pair, `tvg-logo` included.
    `group-title` keeps its first occurrence; for `tvg-*` keys the last
    occurrence wins. Keys without a well-formed quoted value are simply absent.

    Args:
        directive: Full directive line

    Returns:
        Mapping of attribute key to value
    """
    attributes: dict[str, str] = {}

    group_match = GROUP_TITLE_PATTERN.search(directive)
    if group_match:
        attributes["group-title"] = group_match.group(1)

    for tvg_match in TVG_ATTRIBUTE_PATTERN.finditer(directive):
        attributes[f"tvg-{tvg_match.group(1)}"] = tvg_match.group(2)

    return attributes


def parse_directive(directive: str) -> tuple[str, dict[str, str]]:
    """Return (title, attributes) for a directive line."""
    return extract_title(directive), extract_attributes(directive)
