"""Static game knowledge consulted by the action planners."""
