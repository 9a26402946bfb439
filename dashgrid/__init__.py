"""dashgrid — widget grid layout engine for the telemetry dashboard.

Subpackages and modules:

  config   — grid rules and the device grid policy table
  layout   — widget models, collision oracle, placement search, engine
  store    — key-value blob stores used to persist the widget list
"""
