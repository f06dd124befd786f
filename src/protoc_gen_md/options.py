"""Plugin parameter parsing (``protoc --md_opt=...``)."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, Optional

from protoc_gen_md.errors import InvalidOptionError


class AnchorStyle(enum.Enum):
    PLAIN = "plain"
    EXPLICIT = "explicit"


ANCHOR_STYLE_NAMES: Dict[str, AnchorStyle] = {
    "plain": AnchorStyle.PLAIN,
    "explicit": AnchorStyle.EXPLICIT,
    "explicit-anchor": AnchorStyle.EXPLICIT,
}

KNOWN_KEYS = ("output", "anchor_style")


@dataclass
class Options:
    # Name of the single aggregated document; None renders one page per file.
    output: Optional[str] = None
    anchor_style: AnchorStyle = AnchorStyle.PLAIN

    @property
    def single_page(self) -> bool:
        return self.output is not None


def parse_options(parameter: str) -> Options:
    """Parse a comma-separated ``key=value`` parameter string.

    A token without ``=`` is shorthand for ``output=<token>``.
    Raises InvalidOptionError for unknown keys, empty keys or values,
    repeated keys and unknown anchor styles.
    """
    values: Dict[str, str] = {}
    for token in parameter.split(","):
        token = token.strip()
        if not token:
            continue
        if "=" in token:
            key, value = (part.strip() for part in token.split("=", 1))
        else:
            key, value = "output", token
        if not key:
            raise InvalidOptionError(f"Missing option name in '{token}'")
        if key not in KNOWN_KEYS:
            raise InvalidOptionError(
                f"Unknown option '{key}'. Known options: {', '.join(KNOWN_KEYS)}"
            )
        if not value:
            raise InvalidOptionError(f"Option '{key}' requires a value")
        if key in values:
            raise InvalidOptionError(f"Option '{key}' given more than once")
        values[key] = value

    options = Options(output=values.get("output"))
    if "anchor_style" in values:
        style = ANCHOR_STYLE_NAMES.get(values["anchor_style"].lower())
        if style is None:
            raise InvalidOptionError(
                f"Invalid anchor_style '{values['anchor_style']}'. "
                f"Expected one of: {', '.join(ANCHOR_STYLE_NAMES)}"
            )
        options.anchor_style = style
    return options
