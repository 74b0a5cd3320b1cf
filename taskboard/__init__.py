"""Taskboard - kanban projects with gated workflow columns."""
