# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""
Event Type Constants — All event types MUST be UPPERCASE strings.
"""

# --- Agent executions ---
EXECUTION_STARTED = "EXECUTION_STARTED"
EXECUTION_COMPLETED = "EXECUTION_COMPLETED"
EXECUTION_FAILED = "EXECUTION_FAILED"

# --- Project state ---
ARTIFACT_UPDATED = "ARTIFACT_UPDATED"
PROJECT_UPDATED = "PROJECT_UPDATED"

ALL_EVENT_TYPES = {
    EXECUTION_STARTED,
    EXECUTION_COMPLETED,
    EXECUTION_FAILED,
    ARTIFACT_UPDATED,
    PROJECT_UPDATED,
}
