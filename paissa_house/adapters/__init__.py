"""Integration adapters.

Adapters connect the transport-neutral session core to external systems.
Only the Discord adapter exists today.
"""
