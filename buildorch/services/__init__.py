"""Orchestration services: tasks, strategies, sandbox, release, dispatch."""
