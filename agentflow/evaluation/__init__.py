# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

"""Agent evaluation: scenarios, scoring criteria, scorecards and score history."""
