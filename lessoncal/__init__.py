"""Lesson planner calendar: scheduling engine and CLI."""
