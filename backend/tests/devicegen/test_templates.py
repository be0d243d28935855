"""Tests for devicegen.templates: component, state interface and hook sources."""

import pytest

from devicegen.families import get_strategy
from devicegen.structure import ProcessedAction, ProcessedParameter, StateDefinition, StateField
from devicegen.templates import (
    component_name,
    generate_component,
    generate_state_hook,
    generate_state_interface,
    hook_name,
)
from devicegen.templates.controls import (
    action_call,
    js_object,
    jsx_text,
    render_action,
    slider_bounds,
    slider_step,
    unit_suffix,
)
from devicegen.templates.state_hook_template import format_default


def structure_of(config_of, data):
    config, groups = config_of(data)
    return get_strategy(config.device_class).analyze_structure(config, groups)


# ---------------------------------------------------------------------------
# Controls
# ---------------------------------------------------------------------------


class TestControls:
    def test_slider_step_heuristic(self):
        assert slider_step(0, 10) == 1
        assert slider_step(0, 11) == 5
        assert slider_step(0, 100) == 5
        assert slider_step(-50, 60) == 10

    def test_slider_bounds_default_to_0_100(self):
        assert slider_bounds(ProcessedParameter("level", "range")) == (0, 100, 0)
        assert slider_bounds(ProcessedParameter("level", "range", min=10.0, max=20.0, default=15)) == (10, 20, 15)

    def test_unit_suffix(self):
        assert unit_suffix("set_volume") == "%"
        assert unit_suffix("set_channel") == ""

    def test_action_call_arguments(self):
        assert action_call("mute") == "handleAction('mute')"
        assert action_call("mute", target="processor") == "handleAction('mute', undefined, 'processor')"
        assert action_call("set", "{ a: 1 }") == "handleAction('set', { a: 1 })"

    def test_js_object_sorted(self):
        assert js_object({"zone": 2, "level": "x"}) == '{ level: "x", zone: 2 }'
        assert js_object(None) == "{}"

    def test_jsx_text_escapes_braces_and_tags(self):
        assert jsx_text("TV <Main> {1}") == "TV &lt;Main&gt; &#123;1&#125;"

    def test_range_action_renders_slider(self):
        action = ProcessedAction(
            "set_brightness", "Set Brightness", "",
            parameters=[ProcessedParameter("level", "range", min=0, max=10)],
        )
        source = render_action(action, "")
        assert "<SliderControl" in source
        assert "step={1}" in source
        assert "handleAction('set_brightness', { level: value })" in source

    def test_plain_action_renders_button(self):
        source = render_action(ProcessedAction("mute", "Mute", "Mute audio"), "")
        assert source.startswith("<Button")
        assert "handleAction('mute')" in source
        assert 'title="Mute audio"' in source


# ---------------------------------------------------------------------------
# Component
# ---------------------------------------------------------------------------


class TestComponentName:
    def test_mixed_separators(self):
        assert component_name("living_room-tv") == "LivingRoomTvPage"
        assert component_name("LD_PLAYER") == "LdPlayerPage"

    @pytest.mark.parametrize("device_id,expected", [
        ("2nd_floor_tv", "Device2ndFloorTvPage"),
        ("tv.kitchen#1", "TvKitchen1Page"),
        ("---", "DevicePage"),
    ])
    def test_always_a_valid_identifier(self, device_id, expected):
        name = component_name(device_id)
        assert name == expected
        assert name.isidentifier()


class TestGenerateComponent:
    def test_header_and_imports(self, config_of, lg_payload):
        source = generate_component(structure_of(config_of, lg_payload))
        assert source.startswith("// Auto-generated from device config - Remote Control Layout - DO NOT EDIT")
        assert "import React, { useState } from 'react';" in source
        assert "import { useLogStore } from '../../stores/useLogStore';" in source
        assert "import { Button } from '../../components/ui/button';" in source
        assert "import DeviceDropdown from '../../components/DeviceDropdown';" in source
        assert "import PointerPad from '../../components/PointerPad';" in source
        assert "function LivingRoomTvPage()" in source
        assert source.rstrip().endswith("export default LivingRoomTvPage;")

    def test_deterministic(self, config_of, lg_payload):
        first = generate_component(structure_of(config_of, lg_payload))
        second = generate_component(structure_of(config_of, lg_payload))
        assert first == second

    def test_volume_slider_bounds(self, config_of, lg_payload):
        source = generate_component(structure_of(config_of, lg_payload))
        assert "const [setVolumeValue, setSetVolumeValue] = useState<number>(0);" in source
        assert "max={100}" in source
        assert "step={5}" in source

    def test_dropdowns_wired_to_api(self, config_of, lg_payload):
        source = generate_component(structure_of(config_of, lg_payload))
        assert "onLoad={() => handleAction('get_available_inputs')}" in source
        assert "handleAction('set_input', { input_source: id })" in source
        assert "handleAction('launch_app', { app_name: id })" in source

    def test_pointer_uses_parameter_names(self, config_of, lg_payload):
        source = generate_component(structure_of(config_of, lg_payload))
        assert "handleAction('move_cursor', { x: dx, y: dy })" in source

    def test_zone2_params(self, config_of, emotiva_payload):
        del emotiva_payload["commands"]["zone2_power_on"]
        source = generate_component(structure_of(config_of, emotiva_payload))
        assert "handleAction('power_on', { zone: 2 })" in source
        assert "handleAction('set_volume', { level: value, zone: 2 })" in source

    def test_scenario_targets_and_mutations(self, config_of, scenario_payload):
        source = generate_component(structure_of(config_of, scenario_payload))
        assert "useStartScenario, useShutdownScenario" in source
        assert "startScenario.mutate('movie_night');" in source
        assert "handleAction('volume_up', undefined, 'processor')" in source
        assert "handleAction('play', undefined, 'ld_player')" in source
        # power actions address the scenario itself
        assert "handleAction('power_on')" in source
        assert 'data-zone="screen" data-empty="true" data-enabled="false"' in source

    def test_single_volume_command_page(self, config_of, make_payload, make_command):
        data = make_payload("amp", "WirenboardIRDevice", {"volume_up": make_command("volume_up", "volume")})
        source = generate_component(structure_of(config_of, data))
        assert "handleAction('volume_up')" in source
        assert 'data-zone="volume" data-empty="false"' in source
        assert 'data-zone="screen" data-empty="true"' in source
        assert 'data-zone="menu" data-empty="true"' in source
        for hidden in ("power", "media-stack", "apps", "pointer"):
            assert f'data-zone="{hidden}"' not in source
        assert "NavCluster" not in source

    def test_kitchen_hood_fan_speed_slider(self, config_of, hood_payload):
        source = generate_component(structure_of(config_of, hood_payload))
        assert "import SliderControl from '../../components/SliderControl';" in source
        assert "handleAction('set_speed', { speed: value })" in source
        assert "max={4}" in source
        assert "step={1}" in source
        assert "handleAction('light_on')" in source
        assert "'noop'" not in source
        assert "NavCluster" not in source

    def test_device_name_escaped(self, config_of, lg_payload):
        lg_payload["device_name"] = "TV {main}"
        source = generate_component(structure_of(config_of, lg_payload))
        assert "<h1 className=\"text-2xl font-bold\">TV &#123;main&#125;</h1>" in source


# ---------------------------------------------------------------------------
# State interface + hook
# ---------------------------------------------------------------------------


STATE = StateDefinition(
    interface_name="LgTvState",
    fields=[
        StateField("power", "boolean", optional=True, description="TV power state", default_value=True),
        StateField("volume", "number"),
        StateField("current_app", "string | null", optional=True),
        StateField("tags", "any[]", default_value=["a"]),
    ],
    imports=["BaseDeviceState"],
    extends=["BaseDeviceState"],
)


class TestStateInterface:
    def test_interface_fields(self):
        source = generate_state_interface(STATE)
        assert "import { BaseDeviceState } from '../BaseDeviceState';" in source
        assert "export interface LgTvState extends BaseDeviceState {" in source
        assert "  power?: boolean; // TV power state" in source
        assert "  volume: number;" in source

    def test_defaults_include_base_fields(self):
        source = generate_state_interface(STATE)
        assert "export const defaultLgTvState: LgTvState = {" in source
        assert "  device_id: ''," in source
        assert "  power: true," in source
        assert "  volume: 0," in source
        assert "  current_app: null," in source
        assert '  tags: ["a"]' in source

    def test_format_default_quotes_strings(self):
        assert format_default(StateField("s", "string", default_value="it's")) == "'it\\'s'"


class TestStateHook:
    def test_hook_name(self):
        assert hook_name(STATE) == "useLgTv"

    def test_shared_schema_import(self):
        source = generate_state_hook(STATE, "living_room_tv", "LgTvState")
        assert "from '../../types/generated/LgTvState.state';" in source
        assert "export function useLgTv(deviceId: string = 'living_room_tv')" in source

    def test_per_interface_import(self):
        source = generate_state_hook(STATE, "living_room_tv")
        assert "from '../../types/generated/LgTvState';" in source
