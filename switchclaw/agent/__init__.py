"""Agent hand-off: context, delegation and the reply router."""
