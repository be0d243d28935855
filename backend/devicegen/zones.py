"""Zone classifier: partitions a device's actions into the seven remote zones.

Each action lands in exactly one zone (or is dropped and logged). The
decision uses three ordered passes:

1. Exact action-name match against a zone's action keywords
   (``volume_up`` is a volume command even inside a ``navigation`` group)
2. Group match: the action's group id / name against a zone's group keywords
3. Partial action-name match against action keywords, case-insensitive and
   in both directions (keyword in name, or name in keyword)

Within a pass the most specific rule wins: an exact hit beats a substring
hit, then the longer matched keyword wins, then declaration order of
ZONE_RULES (power → media-stack → screen → volume → apps → menu → pointer).
So ``volume_menu`` goes to volume (``volume`` is longer than ``menu``) and
``display_mode`` goes to screen rather than playback (``play``).

Zones with ``show_hide=False`` are always emitted, possibly empty, so that
layouts line up across devices; ``show_hide=True`` zones are omitted when
empty.

Usage:
    zones = classify(groups, actions)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from .device_config import DEFAULT_GROUP, DeviceGroups
from .structure import (
    ActionSection,
    Dropdown,
    DropdownOption,
    NavigationCluster,
    PointerPad,
    PowerButton,
    ProcessedAction,
    RemoteZone,
    VolumeButtons,
    VolumeSlider,
    ZoneContent,
    ZoneId,
    ZoneLayout,
)

logger = logging.getLogger(__name__)

# Name-inside-keyword matches shorter than this are ignored ("on" ⊂ "power_on")
MIN_REVERSE_MATCH = 3


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

class ZoneRule(NamedTuple):
    zone_id: ZoneId
    section: Optional[str]
    group_keywords: Tuple[str, ...]
    action_keywords: Tuple[str, ...]


ZONE_RULES: Tuple[ZoneRule, ...] = (
    ZoneRule(
        ZoneId.POWER, None,
        ("power", "power_control", "main_power"),
        ("power", "power_on", "power_off", "power_toggle", "zone2_power", "standby", "wake"),
    ),
    ZoneRule(
        ZoneId.MEDIA_STACK, "inputs",
        ("inputs", "input_selection", "sources", "input_control"),
        ("input", "source", "get_available_inputs", "set_input", "select_input", "hdmi"),
    ),
    ZoneRule(
        ZoneId.MEDIA_STACK, "playback",
        ("playback", "media_control", "transport", "player"),
        ("play", "pause", "stop", "next", "previous", "rewind", "fast_forward",
         "skip", "record", "playback"),
    ),
    ZoneRule(
        ZoneId.MEDIA_STACK, "tracks",
        ("tracks", "track_control", "track_nav"),
        ("audio", "subtitles", "subtitle", "language", "track", "tray", "eject"),
    ),
    ZoneRule(
        ZoneId.SCREEN, None,
        ("screen", "display", "video", "picture"),
        ("aspect", "zoom", "display_mode", "picture_mode", "screen", "ratio", "letterbox"),
    ),
    ZoneRule(
        ZoneId.VOLUME, None,
        ("volume", "volume_control", "audio", "sound"),
        ("volume", "volume_up", "volume_down", "mute", "set_volume"),
    ),
    ZoneRule(
        ZoneId.APPS, None,
        ("apps", "applications", "channels", "streaming"),
        ("launch_app", "select_app", "get_available_apps", "app", "channel"),
    ),
    ZoneRule(
        ZoneId.MENU, None,
        ("menu", "navigation", "nav", "menu_nav", "ui_nav"),
        ("up", "down", "left", "right", "ok", "enter", "select", "back", "menu",
         "home", "settings", "exit", "menu_exit", "guide", "info"),
    ),
    ZoneRule(
        ZoneId.POINTER, None,
        ("pointer", "cursor", "mouse", "trackpad"),
        ("move", "click", "drag", "scroll", "cursor", "pointer_gesture",
         "touch_at_position", "gesture", "touch"),
    ),
)

# zone → (display name, show_hide)
ZONE_META: Dict[ZoneId, Tuple[str, bool]] = {
    ZoneId.POWER: ("Power Control", True),
    ZoneId.MEDIA_STACK: ("Media Stack", True),
    ZoneId.SCREEN: ("Screen Controls", False),
    ZoneId.VOLUME: ("Volume Control", False),
    ZoneId.APPS: ("Applications", True),
    ZoneId.MENU: ("Navigation", False),
    ZoneId.POINTER: ("Pointer Control", True),
}

ZONE_ORDER: Tuple[ZoneId, ...] = tuple(ZONE_META)


# ---------------------------------------------------------------------------
# Matching helpers
# ---------------------------------------------------------------------------

_TOKEN_RE = re.compile(r"[_\-\s]+")


def normalize(name: str) -> str:
    return "_".join(t for t in _TOKEN_RE.split(name.strip().lower()) if t)


def tokens(name: str) -> List[str]:
    return [t for t in _TOKEN_RE.split(name.lower()) if t]


def match_score(name: str, keywords: Iterable[str]) -> Optional[Tuple[int, int]]:
    """Score how specifically ``name`` matches a keyword list.

    Returns ``(2, len)`` for an exact hit, ``(1, len)`` for a substring hit
    in either direction (len = length of the matched text), or None.
    """
    name = normalize(name)
    if not name:
        return None
    best: Optional[Tuple[int, int]] = None
    for kw in keywords:
        if name == kw:
            score = (2, len(kw))
        elif kw in name:
            score = (1, len(kw))
        elif len(name) >= MIN_REVERSE_MATCH and name in kw:
            score = (1, len(name))
        else:
            continue
        if best is None or score > best:
            best = score
    return best


def _best_rule(name: str, attr: str, exact_only: bool = False) -> Optional[ZoneRule]:
    best_rule: Optional[ZoneRule] = None
    best_score: Optional[Tuple[int, int]] = None
    for rule in ZONE_RULES:
        score = match_score(name, getattr(rule, attr))
        if score is None or (exact_only and score[0] < 2):
            continue
        # strict ">" keeps the earlier rule on equal scores
        if best_score is None or score > best_score:
            best_rule, best_score = rule, score
    return best_rule


# ---------------------------------------------------------------------------
# Assignment (the partition)
# ---------------------------------------------------------------------------

@dataclass
class ZoneAssignment:
    """Result of partitioning actions across zone rules."""
    assigned: Dict[Tuple[ZoneId, Optional[str]], List[ProcessedAction]] = field(default_factory=dict)
    zone_of: Dict[str, ZoneId] = field(default_factory=dict)
    dropped: List[str] = field(default_factory=list)

    def actions_for(self, zone_id: ZoneId, section: Optional[str] = None) -> List[ProcessedAction]:
        return list(self.assigned.get((zone_id, section), []))

    def all_for_zone(self, zone_id: ZoneId) -> List[ProcessedAction]:
        out: List[ProcessedAction] = []
        for (zid, _section), actions in self.assigned.items():
            if zid == zone_id:
                out.extend(actions)
        return out


def _group_names(groups: DeviceGroups, group_id: Optional[str]) -> List[str]:
    if not group_id or group_id == DEFAULT_GROUP:
        return []
    names = [group_id]
    group = groups.get(group_id)
    if group is not None and normalize(group.group_name) != normalize(group_id):
        names.append(group.group_name)
    return names


def rule_for_action(groups: DeviceGroups, action: ProcessedAction) -> Optional[ZoneRule]:
    """Pick the zone rule an action belongs to, or None when nothing matches."""
    rule = _best_rule(action.action_name, "action_keywords", exact_only=True)
    if rule is not None:
        return rule

    group_rule: Optional[ZoneRule] = None
    group_score: Optional[Tuple[int, int]] = None
    for group_name in _group_names(groups, action.group):
        for candidate in ZONE_RULES:
            score = match_score(group_name, candidate.group_keywords)
            if score is not None and (group_score is None or score > group_score):
                group_rule, group_score = candidate, score
    if group_rule is not None:
        return group_rule

    return _best_rule(action.action_name, "action_keywords")


def assign_zones(groups: DeviceGroups, actions: List[ProcessedAction]) -> ZoneAssignment:
    """Partition actions over ZONE_RULES; each action ends up in at most one zone."""
    result = ZoneAssignment()
    for action in actions:
        if action.action_name in result.zone_of:
            continue
        rule = rule_for_action(groups, action)
        if rule is None:
            result.dropped.append(action.action_name)
            continue
        result.assigned.setdefault((rule.zone_id, rule.section), []).append(action)
        result.zone_of[action.action_name] = rule.zone_id

    if result.dropped:
        logger.info(
            "Zone classifier: %d action(s) match no zone and are left out of the layout: %s",
            len(result.dropped), ", ".join(result.dropped),
        )
    return result


# ---------------------------------------------------------------------------
# Content builders
# ---------------------------------------------------------------------------

def _first(actions: Iterable[ProcessedAction], *wanted: str) -> Optional[ProcessedAction]:
    """First action whose name tokens (or full name) include one of ``wanted``."""
    actions = list(actions)
    for want in wanted:
        for action in actions:
            name = normalize(action.action_name)
            if name == want or want in tokens(name):
                return action
    return None


def build_power_buttons(actions: List[ProcessedAction]) -> List[PowerButton]:
    """Discrete on/off buttons are preferred; a toggle fills the left slot
    only when there is no discrete off command."""
    zone2 = [a for a in actions if "zone2" in normalize(a.action_name)]
    main = [a for a in actions if a not in zone2]

    off = _first(main, "off", "standby")
    on = _first(main, "on", "wake")
    toggle = next((a for a in main if a is not off and a is not on), None)

    buttons: List[PowerButton] = []
    if off is not None:
        buttons.append(PowerButton("left", off, "power-off"))
    elif toggle is not None:
        buttons.append(PowerButton("left", toggle, "power-toggle"))
    if zone2:
        buttons.append(PowerButton("middle", zone2[0], "zone2-power"))
    if on is not None:
        buttons.append(PowerButton("right", on, "power-on"))
    return buttons


def build_dropdown(kind: str, actions: List[ProcessedAction]) -> Optional[Dropdown]:
    """API-populated when the list/set commands exist, else one option per command."""
    if not actions:
        return None
    names = {a.action_name for a in actions}
    if kind == "inputs":
        api_action, set_candidates = "get_available_inputs", ("set_input", "select_input")
    else:
        api_action, set_candidates = "get_available_apps", ("launch_app", "select_app")
    set_action = next((s for s in set_candidates if s in names), None)
    if api_action in names or set_action:
        return Dropdown(
            type=kind,
            population_method="api",
            api_action=api_action if api_action in names else None,
            set_action=set_action,
        )
    return Dropdown(
        type=kind,
        population_method="commands",
        options=[
            DropdownOption(id=a.action_name, display_name=a.display_name, description=a.description)
            for a in actions
        ],
    )


def build_volume(actions: List[ProcessedAction]) -> ZoneContent:
    """A continuous level control wins; discrete buttons only without one."""
    mute = _first(actions, "mute")
    ranged = [a for a in actions if a.range_parameter() is not None]
    if ranged:
        level = next((a for a in ranged if "volume" in normalize(a.action_name)), ranged[0])
        return ZoneContent(volume_slider=VolumeSlider(action=level, mute_action=mute))
    up = _first(actions, "volume_up", "up", "plus")
    down = _first(actions, "volume_down", "down", "minus")
    if up is None and down is None and mute is None:
        return ZoneContent()
    return ZoneContent(volume_buttons=[VolumeButtons(up_action=up, down_action=down, mute_action=mute)])


def build_navigation(actions: List[ProcessedAction]) -> NavigationCluster:
    nav = NavigationCluster(
        up_action=_first(actions, "up"),
        down_action=_first(actions, "down"),
        left_action=_first(actions, "left"),
        right_action=_first(actions, "right"),
        ok_action=_first(actions, "ok", "enter", "select"),
    )
    # aux slots take exact names only
    by_name = {normalize(a.action_name): a for a in actions}
    nav.aux1_action = by_name.get("home") or by_name.get("menu_exit")
    nav.aux2_action = by_name.get("menu")
    nav.aux3_action = by_name.get("back")
    nav.aux4_action = by_name.get("settings") or by_name.get("exit")

    used = {id(a) for a in nav.slots().values() if a is not None}
    leftovers = [a for a in actions if id(a) not in used]
    for slot in ("aux1", "aux2", "aux3", "aux4"):
        if not leftovers:
            break
        if getattr(nav, f"{slot}_action") is None:
            setattr(nav, f"{slot}_action", leftovers.pop(0))
    if leftovers:
        logger.info(
            "Navigation cluster full, not rendering: %s",
            ", ".join(a.action_name for a in leftovers),
        )
    return nav


def build_pointer_pad(actions: List[ProcessedAction]) -> Optional[PointerPad]:
    if not actions:
        return None
    move = _first(actions, "move", "cursor", "touch_at_position", "pointer", "gesture") or actions[0]
    rest = [a for a in actions if a is not move]
    return PointerPad(
        move_action=move,
        click_action=_first(rest, "click", "tap", "touch"),
        drag_action=_first(rest, "drag"),
        scroll_action=_first(rest, "scroll"),
    )


def build_zone_content(zone_id: ZoneId, assignment: ZoneAssignment) -> ZoneContent:
    """Build the variant content for one zone from its assigned actions."""
    if zone_id == ZoneId.POWER:
        buttons = build_power_buttons(assignment.actions_for(zone_id))
        return ZoneContent(power_buttons=buttons or None)
    if zone_id == ZoneId.MEDIA_STACK:
        playback = assignment.actions_for(zone_id, "playback")
        tracks = assignment.actions_for(zone_id, "tracks")
        return ZoneContent(
            inputs_dropdown=build_dropdown("inputs", assignment.actions_for(zone_id, "inputs")),
            playback_section=ActionSection(playback, "horizontal") if playback else None,
            tracks_section=ActionSection(tracks, "vertical") if tracks else None,
        )
    if zone_id == ZoneId.SCREEN:
        screen = assignment.actions_for(zone_id)
        return ZoneContent(screen_actions=screen or None)
    if zone_id == ZoneId.VOLUME:
        return build_volume(assignment.actions_for(zone_id))
    if zone_id == ZoneId.APPS:
        return ZoneContent(apps_dropdown=build_dropdown("apps", assignment.actions_for(zone_id)))
    if zone_id == ZoneId.MENU:
        menu = assignment.actions_for(zone_id)
        return ZoneContent(navigation_cluster=build_navigation(menu) if menu else None)
    if zone_id == ZoneId.POINTER:
        return ZoneContent(pointer_pad=build_pointer_pad(assignment.actions_for(zone_id)))
    raise ValueError(f"Unknown zone: {zone_id}")


def default_layout(zone_id: ZoneId, content: ZoneContent) -> ZoneLayout:
    if zone_id == ZoneId.POWER:
        return ZoneLayout(columns=3, spacing="compact")
    if zone_id == ZoneId.VOLUME:
        return ZoneLayout(priority=1 if content.volume_slider else 2, orientation="vertical")
    if zone_id in (ZoneId.MEDIA_STACK, ZoneId.SCREEN):
        return ZoneLayout(orientation="vertical")
    return ZoneLayout()


def make_zone(zone_id: ZoneId, content: ZoneContent) -> RemoteZone:
    name, show_hide = ZONE_META[zone_id]
    return RemoteZone(
        zone_id=zone_id,
        zone_name=name,
        show_hide=show_hide,
        content=content,
        layout=default_layout(zone_id, content),
    )


def finalize_zones(zones: Iterable[RemoteZone]) -> List[RemoteZone]:
    """Drop empty show/hide zones and return the rest in layout order."""
    by_id = {z.zone_id: z for z in zones}
    out: List[RemoteZone] = []
    for zone_id in ZONE_ORDER:
        zone = by_id.get(zone_id)
        if zone is None:
            zone = make_zone(zone_id, ZoneContent())
        if zone.show_hide and (zone.is_empty or not zone.enabled):
            continue
        out.append(zone)
    return out


def build_zones(assignment: ZoneAssignment) -> Dict[ZoneId, RemoteZone]:
    """All seven zones keyed by id, before empty show/hide zones are removed."""
    return {
        zone_id: make_zone(zone_id, build_zone_content(zone_id, assignment))
        for zone_id in ZONE_ORDER
    }


def classify(groups: DeviceGroups, actions: List[ProcessedAction]) -> List[RemoteZone]:
    """Classify actions into the remote zones that should be rendered."""
    assignment = assign_zones(groups, actions)
    zones = finalize_zones(build_zones(assignment).values())
    logger.debug(
        "Zone classifier: %s → %s",
        groups.device_id,
        ", ".join(f"{z.zone_id.value}{'(empty)' if z.is_empty else ''}" for z in zones),
    )
    return zones
