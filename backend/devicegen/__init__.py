"""Device page generation package.

Subpackages:
- families: Per-device-family strategies producing RemoteDeviceStructure
- templates: Component and state-hook source rendering
- schema: State schema introspection (external subprocess + fallback)
- validation: Compiler-diagnostic and structural checks of generated files
- integration: Router manifest and documentation output
- sources: Device configuration sources (remote API, local mapping, scenarios)
"""
