"""Structured device description produced by family strategies.

RemoteDeviceStructure is the generation unit: built once per run from a
(DeviceConfig, DeviceGroups) pair, never mutated afterwards and consumed
by the template generator. ``to_dict()`` methods emit camelCase keys
because the dicts end up embedded in generated TypeScript.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ZoneId(str, Enum):
    """The seven fixed remote-control zones, in layout order."""
    POWER = "power"
    MEDIA_STACK = "media-stack"
    SCREEN = "screen"
    VOLUME = "volume"
    APPS = "apps"
    MENU = "menu"
    POINTER = "pointer"


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass
class ActionIcon:
    """Icon chosen for an action; confidence in [0, 1] is advisory only."""
    icon_library: str
    icon_name: str
    icon_variant: str = "outline"
    fallback_icon: str = "Help"
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iconLibrary": self.icon_library,
            "iconName": self.icon_name,
            "iconVariant": self.icon_variant,
            "fallbackIcon": self.fallback_icon,
            "confidence": self.confidence,
        }


@dataclass
class ProcessedParameter:
    name: str
    type: str
    required: bool = False
    default: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "required": self.required,
            "default": self.default,
            "min": self.min,
            "max": self.max,
            "description": self.description,
        }


@dataclass
class ProcessedAction:
    """A device command prepared for rendering.

    ``location`` is carried verbatim from the command; for scenario devices
    it names the device that ultimately executes the action.
    """
    action_name: str
    display_name: str
    description: str
    parameters: List[ProcessedParameter] = field(default_factory=list)
    group: Optional[str] = None
    icon: ActionIcon = field(default_factory=lambda: ActionIcon("lucide", "Help"))
    ui_hints: Dict[str, Any] = field(default_factory=dict)
    location: str = ""

    def range_parameter(self) -> Optional[ProcessedParameter]:
        for param in self.parameters:
            if param.type == "range":
                return param
        return None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "actionName": self.action_name,
            "displayName": self.display_name,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
            "group": self.group,
            "icon": self.icon.to_dict(),
            "uiHints": dict(sorted(self.ui_hints.items())),
        }
        if self.location:
            d["location"] = self.location
        return d


def _action_dict(action: Optional[ProcessedAction]) -> Optional[Dict[str, Any]]:
    return action.to_dict() if action is not None else None


# ---------------------------------------------------------------------------
# Zone content variants
# ---------------------------------------------------------------------------

@dataclass
class PowerButton:
    position: str  # left | middle | right
    action: ProcessedAction
    button_type: str  # power-off | power-on | power-toggle | zone2-power
    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "position": self.position,
            "action": self.action.to_dict(),
            "buttonType": self.button_type,
        }
        if self.params:
            d["params"] = self.params
        return d


@dataclass
class DropdownOption:
    id: str
    display_name: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "displayName": self.display_name, "description": self.description}


@dataclass
class Dropdown:
    """Inputs/apps selector, populated either by an API action or by commands."""
    type: str  # inputs | apps
    population_method: str  # api | commands
    api_action: Optional[str] = None
    set_action: Optional[str] = None
    options: List[DropdownOption] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.population_method == "commands" and not self.options

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "populationMethod": self.population_method,
            "apiAction": self.api_action,
            "setAction": self.set_action,
            "options": [o.to_dict() for o in self.options],
            "loading": False,
            "empty": self.empty,
        }


@dataclass
class ActionSection:
    """Playback or tracks row of the media stack."""
    actions: List[ProcessedAction] = field(default_factory=list)
    layout: str = "horizontal"

    def to_dict(self) -> Dict[str, Any]:
        return {"actions": [a.to_dict() for a in self.actions], "layout": self.layout}


@dataclass
class VolumeSlider:
    action: ProcessedAction
    mute_action: Optional[ProcessedAction] = None
    orientation: str = "vertical"
    show_value: bool = True
    zone: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.to_dict(),
            "muteAction": _action_dict(self.mute_action),
            "orientation": self.orientation,
            "showValue": self.show_value,
            "zone": self.zone,
        }


@dataclass
class VolumeButtons:
    up_action: Optional[ProcessedAction] = None
    down_action: Optional[ProcessedAction] = None
    mute_action: Optional[ProcessedAction] = None
    zone: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "upAction": _action_dict(self.up_action),
            "downAction": _action_dict(self.down_action),
            "muteAction": _action_dict(self.mute_action),
            "zone": self.zone,
        }


@dataclass
class NavigationCluster:
    up_action: Optional[ProcessedAction] = None
    down_action: Optional[ProcessedAction] = None
    left_action: Optional[ProcessedAction] = None
    right_action: Optional[ProcessedAction] = None
    ok_action: Optional[ProcessedAction] = None
    aux1_action: Optional[ProcessedAction] = None
    aux2_action: Optional[ProcessedAction] = None
    aux3_action: Optional[ProcessedAction] = None
    aux4_action: Optional[ProcessedAction] = None

    SLOTS = ("up", "down", "left", "right", "ok", "aux1", "aux2", "aux3", "aux4")

    def slots(self) -> Dict[str, Optional[ProcessedAction]]:
        return {slot: getattr(self, f"{slot}_action") for slot in self.SLOTS}

    def is_empty(self) -> bool:
        return all(a is None for a in self.slots().values())

    def to_dict(self) -> Dict[str, Any]:
        return {f"{slot}Action": _action_dict(a) for slot, a in self.slots().items()}


@dataclass
class PointerPad:
    move_action: ProcessedAction
    click_action: Optional[ProcessedAction] = None
    drag_action: Optional[ProcessedAction] = None
    scroll_action: Optional[ProcessedAction] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "moveAction": self.move_action.to_dict(),
            "clickAction": _action_dict(self.click_action),
            "dragAction": _action_dict(self.drag_action),
            "scrollAction": _action_dict(self.scroll_action),
        }


@dataclass
class ZoneContent:
    """Variant record: only the fields belonging to the zone's type are set."""
    power_buttons: Optional[List[PowerButton]] = None
    inputs_dropdown: Optional[Dropdown] = None
    playback_section: Optional[ActionSection] = None
    tracks_section: Optional[ActionSection] = None
    screen_actions: Optional[List[ProcessedAction]] = None
    volume_slider: Optional[VolumeSlider] = None
    volume_buttons: Optional[List[VolumeButtons]] = None
    apps_dropdown: Optional[Dropdown] = None
    navigation_cluster: Optional[NavigationCluster] = None
    pointer_pad: Optional[PointerPad] = None

    def is_empty(self) -> bool:
        if self.power_buttons or self.screen_actions or self.volume_slider or self.pointer_pad:
            return False
        if self.volume_buttons:
            return False
        if self.inputs_dropdown or self.apps_dropdown:
            return False
        if self.playback_section and self.playback_section.actions:
            return False
        if self.tracks_section and self.tracks_section.actions:
            return False
        if self.navigation_cluster and not self.navigation_cluster.is_empty():
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {}
        if self.power_buttons is not None:
            d["powerButtons"] = [b.to_dict() for b in self.power_buttons]
        if self.inputs_dropdown is not None:
            d["inputsDropdown"] = self.inputs_dropdown.to_dict()
        if self.playback_section is not None:
            d["playbackSection"] = self.playback_section.to_dict()
        if self.tracks_section is not None:
            d["tracksSection"] = self.tracks_section.to_dict()
        if self.screen_actions is not None:
            d["screenActions"] = [a.to_dict() for a in self.screen_actions]
        if self.volume_slider is not None:
            d["volumeSlider"] = self.volume_slider.to_dict()
        if self.volume_buttons is not None:
            d["volumeButtons"] = [b.to_dict() for b in self.volume_buttons]
        if self.apps_dropdown is not None:
            d["appsDropdown"] = self.apps_dropdown.to_dict()
        if self.navigation_cluster is not None:
            d["navigationCluster"] = self.navigation_cluster.to_dict()
        if self.pointer_pad is not None:
            d["pointerPad"] = self.pointer_pad.to_dict()
        return d


@dataclass
class ZoneLayout:
    priority: Optional[int] = None
    columns: Optional[int] = None
    spacing: str = "normal"
    alignment: str = "center"
    orientation: str = "horizontal"

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "spacing": self.spacing,
            "alignment": self.alignment,
            "orientation": self.orientation,
        }
        if self.priority is not None:
            d["priority"] = self.priority
        if self.columns is not None:
            d["columns"] = self.columns
        return d


@dataclass
class RemoteZone:
    zone_id: ZoneId
    zone_name: str
    show_hide: bool
    content: ZoneContent = field(default_factory=ZoneContent)
    layout: ZoneLayout = field(default_factory=ZoneLayout)
    enabled: bool = True

    @property
    def zone_type(self) -> str:
        return self.zone_id.value

    @property
    def is_empty(self) -> bool:
        return self.content.is_empty()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "zoneId": self.zone_id.value,
            "zoneName": self.zone_name,
            "zoneType": self.zone_type,
            "showHide": self.show_hide,
            "isEmpty": self.is_empty,
            "enabled": self.enabled,
            "content": self.content.to_dict(),
            "layout": self.layout.to_dict(),
        }


# ---------------------------------------------------------------------------
# State + handlers
# ---------------------------------------------------------------------------

@dataclass
class StateField:
    name: str
    type: str
    optional: bool = False
    description: str = ""
    default_value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "optional": self.optional,
            "description": self.description,
            "defaultValue": self.default_value,
        }


@dataclass
class StateDefinition:
    interface_name: str
    fields: List[StateField] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    extends: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interfaceName": self.interface_name,
            "fields": [f.to_dict() for f in self.fields],
            "imports": list(self.imports),
            "extends": list(self.extends),
        }


@dataclass
class ActionHandler:
    action_name: str
    handler_name: str
    parameters: List[ProcessedParameter] = field(default_factory=list)
    location: str = ""

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "actionName": self.action_name,
            "handlerName": self.handler_name,
            "parameters": [p.to_dict() for p in self.parameters],
        }
        if self.location:
            d["location"] = self.location
        return d


@dataclass
class DeviceSpecialCase:
    device_class: str
    case_type: str
    configuration: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deviceClass": self.device_class,
            "caseType": self.case_type,
            "configuration": self.configuration,
        }


@dataclass(frozen=True)
class RemoteDeviceStructure:
    """The generation unit handed to the template generator."""
    device_id: str
    device_name: str
    device_class: str
    remote_zones: List[RemoteZone]
    state_interface: StateDefinition
    action_handlers: List[ActionHandler] = field(default_factory=list)
    special_cases: List[DeviceSpecialCase] = field(default_factory=list)

    @property
    def is_scenario(self) -> bool:
        return self.device_class == "ScenarioDevice"

    def zone(self, zone_id: ZoneId) -> Optional[RemoteZone]:
        for zone in self.remote_zones:
            if zone.zone_id == zone_id:
                return zone
        return None

    def all_actions(self) -> List[ProcessedAction]:
        """Every action rendered somewhere in the layout, in zone order."""
        seen: Dict[str, ProcessedAction] = {}
        for zone in self.remote_zones:
            for action in zone_actions(zone):
                seen.setdefault(action.action_name, action)
        return list(seen.values())

    def has_special_case(self, case_type: str) -> bool:
        return any(c.case_type == case_type for c in self.special_cases)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deviceId": self.device_id,
            "deviceName": self.device_name,
            "deviceClass": self.device_class,
            "remoteZones": [z.to_dict() for z in self.remote_zones],
            "stateInterface": self.state_interface.to_dict(),
            "actionHandlers": [h.to_dict() for h in self.action_handlers],
            "specialCases": [c.to_dict() for c in self.special_cases],
        }


def zone_actions(zone: RemoteZone) -> List[ProcessedAction]:
    """Flatten the actions a zone renders."""
    c = zone.content
    actions: List[ProcessedAction] = []
    for button in c.power_buttons or []:
        actions.append(button.action)
    for section in (c.playback_section, c.tracks_section):
        if section:
            actions.extend(section.actions)
    actions.extend(c.screen_actions or [])
    if c.volume_slider:
        actions.append(c.volume_slider.action)
        if c.volume_slider.mute_action:
            actions.append(c.volume_slider.mute_action)
    for buttons in c.volume_buttons or []:
        actions.extend(a for a in (buttons.up_action, buttons.down_action, buttons.mute_action) if a)
    if c.navigation_cluster:
        actions.extend(a for a in c.navigation_cluster.slots().values() if a)
    if c.pointer_pad:
        p = c.pointer_pad
        actions.extend(a for a in (p.move_action, p.click_action, p.drag_action, p.scroll_action) if a)
    return actions
