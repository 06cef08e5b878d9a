from budgetrec.agent.runner import run_agent_loop
from budgetrec.agent.registry import TOOL_REGISTRY, get_openai_tools_schema

__all__ = [
    "run_agent_loop",
    "TOOL_REGISTRY",
    "get_openai_tools_schema",
]
