"""ClawKitchen workflow runs.

File-first workflow run records with a human-approval gate:
- sample (simulated) runs over a declarative workflow graph
- approve / request changes / cancel decisions on in-flight runs
- best-effort approval notifications through the OpenClaw gateway
"""

__version__ = "0.1.0"

from clawkitchen_workflows.config import Settings

__all__ = ["__version__", "Settings"]
