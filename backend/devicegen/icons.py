"""Icon selection for device actions: rule table with a scored fallback.

Resolution order (first match wins):
1. Family override (exact action name) → confidence 1.0
2. Exact key match on the cleaned name → confidence 0.9
3. Partial match: the longest key contained in the name, or containing
   the name, → confidence 0.7 (ties broken by table order)
4. Fallback ``Help`` icon → confidence 0.3

Names are cleaned by lower-casing and stripping ``_``, ``-`` and spaces,
so ``Volume_Up``, ``volume-up`` and ``volumeup`` resolve identically.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Mapping, NamedTuple, Optional, Tuple

from .structure import ActionIcon

logger = logging.getLogger(__name__)

ICON_LIBRARY = "lucide"
FALLBACK_ICON = "Help"
FALLBACK_CONFIDENCE = 0.3
EXACT_CONFIDENCE = 0.9
PARTIAL_CONFIDENCE = 0.7
OVERRIDE_CONFIDENCE = 1.0

# Reverse (name-in-key) matches shorter than this are ignored; "on" would
# otherwise match "button", "ok" would match "bookmark".
_MIN_REVERSE_MATCH = 3


class IconRule(NamedTuple):
    icon: str
    alternate: str
    fallback: str


# ---------------------------------------------------------------------------
# Rule table: order matters only for equal-length partial matches
# ---------------------------------------------------------------------------

ICON_RULES: Dict[str, IconRule] = {
    # Power + navigation
    "power": IconRule("Power", "PowerIcon", "power"),
    "up": IconRule("ChevronUp", "ChevronUpIcon", "arrow-up"),
    "down": IconRule("ChevronDown", "ChevronDownIcon", "arrow-down"),
    "left": IconRule("ChevronLeft", "ChevronLeftIcon", "arrow-left"),
    "right": IconRule("ChevronRight", "ChevronRightIcon", "arrow-right"),
    "ok": IconRule("Check", "CheckIcon", "check"),
    "enter": IconRule("Check", "CheckIcon", "check"),
    "select": IconRule("Check", "CheckIcon", "select"),
    "menu": IconRule("Menu", "Bars3Icon", "menu"),
    "back": IconRule("ArrowLeft", "ArrowLeftIcon", "back"),
    "home": IconRule("Home", "HomeIcon", "home"),
    "exit": IconRule("X", "XMarkIcon", "exit"),
    "guide": IconRule("BookOpen", "BookOpenIcon", "guide"),
    "info": IconRule("Info", "InformationCircleIcon", "info"),
    "settings": IconRule("Settings", "Cog6ToothIcon", "settings"),
    "mode": IconRule("Settings", "Cog6ToothIcon", "mode"),

    # Media transport
    "play": IconRule("Play", "PlayIcon", "play"),
    "pause": IconRule("Pause", "PauseIcon", "pause"),
    "stop": IconRule("Square", "StopIcon", "stop"),
    "next": IconRule("SkipForward", "ForwardIcon", "next"),
    "previous": IconRule("SkipBack", "BackwardIcon", "previous"),
    "rewind": IconRule("Rewind", "BackwardIcon", "rewind"),
    "fastforward": IconRule("FastForward", "ForwardIcon", "fast-forward"),
    "record": IconRule("Circle", "StopCircleIcon", "record"),
    "eject": IconRule("Disc", "ArrowUpTrayIcon", "eject"),
    "subtitle": IconRule("Captions", "ChatBubbleBottomCenterTextIcon", "subtitles"),

    # Audio
    "volume": IconRule("Volume2", "SpeakerWaveIcon", "volume"),
    "volumeup": IconRule("Volume2", "SpeakerWaveIcon", "volume-up"),
    "volumedown": IconRule("Volume1", "SpeakerWaveIcon", "volume-down"),
    "mute": IconRule("VolumeX", "SpeakerXMarkIcon", "mute"),
    "bass": IconRule("Volume2", "SpeakerWaveIcon", "bass"),
    "treble": IconRule("Volume2", "SpeakerWaveIcon", "treble"),
    "balance": IconRule("ArrowLeftRight", "ArrowsRightLeftIcon", "balance"),
    "eq": IconRule("SlidersHorizontal", "AdjustmentsHorizontalIcon", "equalizer"),
    "zone": IconRule("Map", "MapIcon", "zone"),

    # Display + sources
    "tv": IconRule("Tv", "TvIcon", "tv"),
    "input": IconRule("ArrowLeftRight", "ArrowsRightLeftIcon", "input"),
    "channel": IconRule("Hash", "HashtagIcon", "channel"),
    "aspect": IconRule("RectangleHorizontal", "RectangleGroupIcon", "aspect-ratio"),
    "zoom": IconRule("ZoomIn", "MagnifyingGlassPlusIcon", "zoom"),
    "picture": IconRule("Image", "PhotoIcon", "picture"),

    # Smart features
    "siri": IconRule("Mic", "MicrophoneIcon", "microphone"),
    "voice": IconRule("Mic", "MicrophoneIcon", "microphone"),
    "airplay": IconRule("Airplay", "WifiIcon", "wifi"),
    "app": IconRule("Grid3x3", "Squares2X2Icon", "apps"),

    # Appliance controls
    "fan": IconRule("Fan", "CubeTransparentIcon", "fan"),
    "speed": IconRule("TrendingUp", "ArrowTrendingUpIcon", "speed"),
    "light": IconRule("Lightbulb", "LightBulbIcon", "light"),
    "timer": IconRule("Timer", "ClockIcon", "timer"),
    "filter": IconRule("Filter", "FunnelIcon", "filter"),
    "turbo": IconRule("Zap", "BoltIcon", "turbo"),

    # Pointer
    "cursor": IconRule("MousePointer", "CursorArrowRaysIcon", "cursor"),
    "move": IconRule("Move", "ArrowsPointingOutIcon", "cursor"),
    "click": IconRule("Hand", "HandRaisedIcon", "click"),
    "drag": IconRule("Hand", "HandRaisedIcon", "drag"),
    "scroll": IconRule("ArrowUpDown", "ArrowsUpDownIcon", "scroll"),
}

_CLEAN_RE = re.compile(r"[_\-\s]+")


def clean_action_name(action_name: str) -> str:
    """Lower-case and strip separators: ``Volume_Up`` → ``volumeup``."""
    return _CLEAN_RE.sub("", action_name.lower())


def find_icon_rule(action_name: str) -> Tuple[Optional[IconRule], float]:
    """Return ``(rule, confidence)`` for a name, ``(None, 0.0)`` when nothing matches."""
    name = clean_action_name(action_name)
    if not name:
        return None, 0.0

    rule = ICON_RULES.get(name)
    if rule is not None:
        return rule, EXACT_CONFIDENCE

    best_rule: Optional[IconRule] = None
    best_len = 0
    for key, candidate in ICON_RULES.items():
        if key in name:
            matched_len = len(key)
        elif len(name) >= _MIN_REVERSE_MATCH and name in key:
            matched_len = len(name)
        else:
            continue
        if matched_len > best_len:
            best_rule, best_len = candidate, matched_len
    if best_rule is not None:
        return best_rule, PARTIAL_CONFIDENCE
    return None, 0.0


def resolve_icon(
    action_name: str,
    overrides: Optional[Mapping[str, str]] = None,
) -> ActionIcon:
    """Select an icon for an action.

    Args:
        action_name: Raw command action name
        overrides: Family-specific ``action_name → icon name`` mapping,
            consulted before the rule table
    """
    if overrides and action_name in overrides:
        return ActionIcon(
            icon_library=ICON_LIBRARY,
            icon_name=overrides[action_name],
            fallback_icon=FALLBACK_ICON,
            confidence=OVERRIDE_CONFIDENCE,
        )

    rule, confidence = find_icon_rule(action_name)
    if rule is None:
        logger.debug("No icon rule for action '%s', using %s", action_name, FALLBACK_ICON)
        return ActionIcon(
            icon_library=ICON_LIBRARY,
            icon_name=FALLBACK_ICON,
            fallback_icon="command",
            confidence=FALLBACK_CONFIDENCE,
        )
    return ActionIcon(
        icon_library=ICON_LIBRARY,
        icon_name=rule.icon,
        fallback_icon=rule.fallback,
        confidence=confidence,
    )
