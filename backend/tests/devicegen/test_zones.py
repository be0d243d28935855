"""Tests for devicegen.zones: partition, tie-breaks and content builders."""

import pytest

from devicegen.device_config import DeviceGroups, derive_groups_from_config, validate_device_config
from devicegen.families.common import build_actions
from devicegen.structure import ZoneId
from devicegen.zones import (
    ZONE_ORDER,
    assign_zones,
    build_zones,
    classify,
    finalize_zones,
    match_score,
    rule_for_action,
)


@pytest.fixture
def actions_for(make_payload, make_command):
    """Build (groups, actions) from ``{action: group}``."""
    def _build(spec, device_class="LgTv"):
        config = validate_device_config(make_payload("d", device_class, {
            name: make_command(name, group) for name, group in spec.items()
        }))
        groups = derive_groups_from_config(config)
        return groups, build_actions(config, groups)
    return _build


class TestMatchScore:
    def test_exact_beats_substring(self):
        assert match_score("mute", ["mute"]) == (2, 4)
        assert match_score("mute_toggle", ["mute"]) == (1, 4)

    def test_reverse_substring_needs_three_chars(self):
        assert match_score("vol", ["volume"]) == (1, 3)
        assert match_score("on", ["power_on"]) is None

    def test_case_and_separators_normalized(self):
        assert match_score("Volume-Up", ["volume_up"]) == (2, 9)

    def test_no_match(self):
        assert match_score("frobnicate", ["volume", "mute"]) is None


class TestAssignment:
    def test_every_action_in_at_most_one_zone(self, lg_payload, config_of):
        config, groups = config_of(lg_payload)
        actions = build_actions(config, groups)
        assignment = assign_zones(groups, actions)
        seen = []
        for bucket in assignment.assigned.values():
            seen.extend(a.action_name for a in bucket)
        assert len(seen) == len(set(seen))
        assert set(seen) | set(assignment.dropped) == {a.action_name for a in actions}

    def test_classification_is_idempotent(self, emotiva_payload, config_of):
        config, groups = config_of(emotiva_payload)
        actions = build_actions(config, groups)
        first = [z.to_dict() for z in classify(groups, actions)]
        second = [z.to_dict() for z in classify(groups, actions)]
        assert first == second

    def test_exact_action_name_beats_group(self, actions_for):
        groups, actions = actions_for({"volume_up": "navigation"})
        assert rule_for_action(groups, actions[0]).zone_id == ZoneId.VOLUME

    def test_group_beats_partial_name(self, actions_for):
        groups, actions = actions_for({"sleep_timer": "screen"})
        assert rule_for_action(groups, actions[0]).zone_id == ZoneId.SCREEN

    def test_longer_keyword_wins_tie(self, actions_for):
        groups, actions = actions_for({"volume_menu": None})
        assert rule_for_action(groups, actions[0]).zone_id == ZoneId.VOLUME

    def test_display_mode_goes_to_screen(self, actions_for):
        groups, actions = actions_for({"display_mode": None})
        assert rule_for_action(groups, actions[0]).zone_id == ZoneId.SCREEN

    def test_longer_partial_keyword_wins(self, actions_for):
        groups, actions = actions_for({"input_menu": None})
        assert rule_for_action(groups, actions[0]).zone_id == ZoneId.MEDIA_STACK

    def test_equal_scores_keep_declaration_order(self, actions_for):
        # "stop" (playback) and "menu" are both four characters
        groups, actions = actions_for({"stop_menu": None})
        assert rule_for_action(groups, actions[0]).zone_id == ZoneId.MEDIA_STACK

    def test_unmatched_action_dropped_not_raised(self, actions_for):
        groups, actions = actions_for({"frobnicate": None, "mute": "volume"})
        assignment = assign_zones(groups, actions)
        assert assignment.dropped == ["frobnicate"]
        assert assignment.zone_of["mute"] == ZoneId.VOLUME


class TestSingleVolumeCommand:
    """A lone volume_up populates the volume zone; the rest are empty or hidden."""

    def test_zones(self, actions_for):
        groups, actions = actions_for({"volume_up": "volume"})
        zones = classify(groups, actions)
        by_id = {z.zone_id: z for z in zones}

        assert not by_id[ZoneId.VOLUME].is_empty
        buttons = by_id[ZoneId.VOLUME].content.volume_buttons
        assert buttons[0].up_action.action_name == "volume_up"

        # always-visible zones render empty, show/hide zones are omitted
        assert by_id[ZoneId.SCREEN].is_empty
        assert by_id[ZoneId.MENU].is_empty
        for hidden in (ZoneId.POWER, ZoneId.MEDIA_STACK, ZoneId.APPS, ZoneId.POINTER):
            assert hidden not in by_id
        assert [z.zone_id for z in zones] == [ZoneId.SCREEN, ZoneId.VOLUME, ZoneId.MENU]


class TestContentBuilders:
    def test_continuous_volume_preferred_over_buttons(self, lg_payload, config_of, make_command):
        lg_payload["commands"]["volume_up"] = make_command("volume_up", "volume")
        config, groups = config_of(lg_payload)
        zones = {z.zone_id: z for z in classify(groups, build_actions(config, groups))}
        volume = zones[ZoneId.VOLUME].content
        assert volume.volume_slider.action.action_name == "set_volume"
        assert volume.volume_slider.mute_action.action_name == "mute"
        assert volume.volume_buttons is None

    def test_power_buttons_left_and_right(self, ir_payload, config_of):
        config, groups = config_of(ir_payload)
        zones = {z.zone_id: z for z in classify(groups, build_actions(config, groups))}
        buttons = zones[ZoneId.POWER].content.power_buttons
        assert [(b.position, b.action.action_name) for b in buttons] == [
            ("left", "power_off"), ("right", "power_on"),
        ]

    def test_power_toggle_fills_left_without_off(self, actions_for):
        groups, actions = actions_for({"power": "power", "power_on": "power"})
        zones = {z.zone_id: z for z in classify(groups, actions)}
        buttons = zones[ZoneId.POWER].content.power_buttons
        assert buttons[0].button_type == "power-toggle"
        assert buttons[0].action.action_name == "power"

    def test_api_dropdowns(self, lg_payload, config_of):
        config, groups = config_of(lg_payload)
        zones = {z.zone_id: z for z in classify(groups, build_actions(config, groups))}
        inputs = zones[ZoneId.MEDIA_STACK].content.inputs_dropdown
        assert inputs.population_method == "api"
        assert inputs.api_action == "get_available_inputs"
        assert inputs.set_action == "set_input"
        apps = zones[ZoneId.APPS].content.apps_dropdown
        assert apps.set_action == "launch_app"

    def test_command_dropdown_lists_each_command(self, actions_for):
        groups, actions = actions_for({"hdmi1": "inputs", "hdmi2": "inputs"})
        zones = {z.zone_id: z for z in classify(groups, actions)}
        dropdown = zones[ZoneId.MEDIA_STACK].content.inputs_dropdown
        assert dropdown.population_method == "commands"
        assert [o.id for o in dropdown.options] == ["hdmi1", "hdmi2"]

    def test_navigation_slots(self, apple_payload, config_of):
        config, groups = config_of(apple_payload)
        zones = {z.zone_id: z for z in classify(groups, build_actions(config, groups))}
        nav = zones[ZoneId.MENU].content.navigation_cluster
        assert nav.up_action.action_name == "up"
        assert nav.ok_action.action_name == "select"
        assert nav.aux1_action.action_name == "home"
        assert nav.aux2_action.action_name == "menu"

    def test_pointer_pad(self, lg_payload, config_of):
        config, groups = config_of(lg_payload)
        zones = {z.zone_id: z for z in classify(groups, build_actions(config, groups))}
        pad = zones[ZoneId.POINTER].content.pointer_pad
        assert pad.move_action.action_name == "move_cursor"
        assert pad.click_action.action_name == "click"


class TestFinalize:
    def test_layout_order_and_all_zones_built(self):
        groups = DeviceGroups(device_id="d", groups=[])
        zones = build_zones(assign_zones(groups, []))
        assert list(zones) == list(ZONE_ORDER)
        final = finalize_zones(zones.values())
        assert [z.zone_id for z in final] == [ZoneId.SCREEN, ZoneId.VOLUME, ZoneId.MENU]

    def test_disabled_show_hide_zone_removed(self, ir_payload, config_of):
        config, groups = config_of(ir_payload)
        zones = build_zones(assign_zones(groups, build_actions(config, groups)))
        zones[ZoneId.POWER].enabled = False
        assert ZoneId.POWER not in [z.zone_id for z in finalize_zones(zones.values())]
