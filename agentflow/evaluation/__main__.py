# Copyright (c) 2026 AgentFlow Contributors. All Rights Reserved.

import sys

from agentflow.evaluation.cli import main

sys.exit(main())
