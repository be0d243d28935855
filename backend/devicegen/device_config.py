"""Device configuration models: the input contract of the pipeline.

A device configuration declares the commands a device exposes; groups can
either be supplied by the configuration backend or derived from the
commands' ``group`` field.

Usage:
    config = validate_device_config(payload)
    groups = derive_groups_from_config(config)
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import InvalidDeviceConfigError

DEFAULT_GROUP = "default"


class CommandParameter(BaseModel):
    """A single parameter accepted by a device command."""
    name: str
    type: Literal["range", "string", "integer"]
    required: bool = False
    default: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    description: str = ""


class DeviceCommand(BaseModel):
    """A command entry of a device configuration."""
    action: str
    location: str = ""
    rom_position: Optional[str] = None
    description: str = ""
    group: Optional[str] = None
    params: Optional[List[CommandParameter]] = None


class DeviceConfig(BaseModel):
    """Declarative description of a device and its commands."""
    device_id: str = Field(..., min_length=1)
    device_name: str
    device_class: str = Field(..., min_length=1)
    config_class: str = ""
    commands: Dict[str, DeviceCommand]


class GroupAction(BaseModel):
    """An action listed under a device group."""
    name: str
    description: str = ""
    params: Optional[List[CommandParameter]] = None


class DeviceGroup(BaseModel):
    """A named group of device actions."""
    group_id: str
    group_name: str
    actions: List[GroupAction] = Field(default_factory=list)
    status: str = "active"


class DeviceGroups(BaseModel):
    """Group listing for one device."""
    device_id: str
    groups: List[DeviceGroup] = Field(default_factory=list)

    @field_validator("groups")
    @classmethod
    def validate_unique_group_ids(cls, groups: List[DeviceGroup]) -> List[DeviceGroup]:
        seen = set()
        for group in groups:
            if group.group_id in seen:
                raise ValueError(f"duplicate group_id '{group.group_id}'")
            seen.add(group.group_id)
        return groups

    def group_ids(self) -> List[str]:
        return [g.group_id for g in self.groups]

    def get(self, group_id: Optional[str]) -> Optional[DeviceGroup]:
        for group in self.groups:
            if group.group_id == group_id:
                return group
        return None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_device_config(payload: Any) -> DeviceConfig:
    """Validate a raw configuration payload.

    Raises:
        InvalidDeviceConfigError: the payload is not a valid device configuration
    """
    if isinstance(payload, DeviceConfig):
        return payload
    if not isinstance(payload, dict):
        raise InvalidDeviceConfigError(
            f"Invalid device configuration structure: expected object, got {type(payload).__name__}"
        )
    try:
        return DeviceConfig.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise InvalidDeviceConfigError(
            f"Invalid device configuration structure ({fields})"
        ) from e


def validate_device_groups(payload: Any) -> DeviceGroups:
    """Validate a raw groups payload, raising InvalidDeviceConfigError."""
    if isinstance(payload, DeviceGroups):
        return payload
    try:
        return DeviceGroups.model_validate(payload)
    except ValidationError as e:
        raise InvalidDeviceConfigError(f"Invalid device groups structure: {e.error_count()} error(s)") from e


# ---------------------------------------------------------------------------
# Group derivation
# ---------------------------------------------------------------------------

def effective_group(command: DeviceCommand, declared: Optional[List[str]] = None) -> str:
    """Group a command belongs to, ``default`` when ungrouped or undeclared."""
    if not command.group:
        return DEFAULT_GROUP
    if declared is not None and command.group not in declared:
        return DEFAULT_GROUP
    return command.group


def derive_groups_from_config(
    config: DeviceConfig,
    declared: Optional[List[str]] = None,
) -> DeviceGroups:
    """Derive DeviceGroups from the ``group`` field of each command.

    The ``default`` group is always present and always first; other groups
    follow sorted by id and actions within a group are sorted by name, so
    the result does not depend on command order.

    Args:
        config: Validated device configuration
        declared: Optional list of group ids a groups object declares;
            commands naming any other group are folded into ``default``
    """
    buckets: Dict[str, List[GroupAction]] = {DEFAULT_GROUP: []}
    for command in config.commands.values():
        group_id = effective_group(command, declared)
        buckets.setdefault(group_id, []).append(GroupAction(
            name=command.action,
            description=command.description,
            params=command.params,
        ))

    ordered = [DEFAULT_GROUP] + sorted(k for k in buckets if k != DEFAULT_GROUP)
    return DeviceGroups(
        device_id=config.device_id,
        groups=[
            DeviceGroup(
                group_id=group_id,
                group_name=group_id[:1].upper() + group_id[1:],
                actions=sorted(buckets[group_id], key=lambda a: a.name),
                status="active",
            )
            for group_id in ordered
        ],
    )
