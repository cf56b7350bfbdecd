"""Core logic for pipewatch: timeline model, polling monitor, hooks, config."""
