"""
Tool registry for the budget assistant.

Each tool is registered with:
- name: unique identifier matching the OpenAI function name
- description: shown to the LLM, says when to use the tool
- parameters: JSON Schema for the function arguments
- handler: callable(**kwargs) -> dict (JSON-serializable)
"""
from typing import Callable, Dict, Any, List

_REGISTRY: Dict[str, Dict[str, Any]] = {}


def register_tool(
    name: str,
    description: str,
    parameters: Dict[str, Any],
    handler: Callable[..., dict],
):
    """Register a tool in the global registry. A name can't be bound to two different handlers."""
    existing = _REGISTRY.get(name)
    if existing is not None and existing["handler"] is not handler:
        raise ValueError(f"Tool {name!r} is already registered")
    if parameters.get("type") != "object":
        raise ValueError(f"Tool {name!r} parameters must be a JSON Schema object")
    _REGISTRY[name] = {
        "name": name,
        "description": description,
        "parameters": parameters,
        "handler": handler,
    }


def get_tool_handler(name: str) -> Callable[..., dict]:
    """Return the handler for a registered tool. Raises KeyError for unknown tools."""
    return _REGISTRY[name]["handler"]


def get_openai_tools_schema() -> List[Dict[str, Any]]:
    """Return the list of tool definitions in OpenAI function-calling format."""
    return [
        {
            "type": "function",
            "function": {
                "name": entry["name"],
                "description": entry["description"],
                "parameters": entry["parameters"],
            },
        }
        for entry in _REGISTRY.values()
    ]


# Expose for convenience
TOOL_REGISTRY = _REGISTRY


def list_tool_names() -> List[str]:
    return sorted(_REGISTRY)
