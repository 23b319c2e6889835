"""Takt - day timeline, someday backlog and recurring tasks."""
