"""Source templates for generated device pages.

- component_template: the page component (``{id}.gen.tsx``)
- state_hook_template: state interface + per-device hook
- controls: button / slider / dropdown fragments shared by both
"""

from .component_template import component_name, generate_component
from .state_hook_template import generate_state_hook, generate_state_interface, hook_name

__all__ = [
    "component_name",
    "generate_component",
    "generate_state_hook",
    "generate_state_interface",
    "hook_name",
]
