"""
Agent runner: OpenAI tool-calling loop.

The model decides which budget tools to call and writes the narrative;
every number it quotes comes from a tool result.
"""
import json
import time
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from budgetrec.config import settings
from budgetrec.llm.openai_client import get_chat_completion
from budgetrec.agent.registry import get_openai_tools_schema, get_tool_handler
from budgetrec.logging import logger, new_request_id

# Ensure all tools are registered on import
import budgetrec.agent.tools  # noqa: F401


SYSTEM_PROMPT = """\
You are a budget analysis assistant. You help managers compare budgeted hours
against billed hours per team and employee.

You have access to tools for:
- Executive summaries of a month (totals, variance, utilization, teams, employees)
- Performance of a single team
- Listing the teams in the budget plan

Rules:
- Always call a tool before quoting numbers; never invent figures.
- If a tool result has "error": true, tell the user the analysis failed and why.
  Do not present it as zero activity.
- Periods look like "May 2025"; teams look like "CST III".
- Be concise and lead with the variance and utilization.
"""


@dataclass
class AgentStep:
    """One step in the agent trace."""
    role: str  # "assistant", "tool"
    content: Optional[str] = None
    tool_calls: Optional[List[Dict[str, Any]]] = None
    tool_name: Optional[str] = None
    tool_args: Optional[Dict[str, Any]] = None
    tool_result: Optional[Dict[str, Any]] = None
    duration_ms: Optional[int] = None


@dataclass
class AgentResult:
    """Final result of an agent run."""
    steps: List[AgentStep] = field(default_factory=list)
    final_answer: str = ""
    total_steps: int = 0
    stopped_reason: str = ""  # "complete", "max_steps", "error: ..."


def execute_tool(tool_name: str, args_json: str) -> tuple[dict, Dict[str, Any], bool]:
    """Run one tool call. Returns (result, parsed_args, success)."""
    try:
        kwargs = json.loads(args_json) if args_json else {}
    except json.JSONDecodeError:
        kwargs = {}

    try:
        handler = get_tool_handler(tool_name)
    except KeyError:
        return {"error": True, "errorMessage": f"Unknown tool: {tool_name}"}, kwargs, False

    try:
        result = handler(**kwargs)
    except Exception as e:
        logger.error(f"Tool {tool_name} failed: {e}")
        return {"error": True, "errorMessage": str(e)}, kwargs, False

    return result, kwargs, not result.get("error", False)


def run_agent_loop(
    user_message: str,
    history: Optional[List[Dict[str, Any]]] = None,
    max_steps: Optional[int] = None,
) -> AgentResult:
    """
    Execute the agent loop.

    1. Send the conversation + tool schemas to OpenAI.
    2. If the model returns tool_calls, execute them and feed results back.
    3. Repeat until the model answers in plain text or max_steps is reached.

    Args:
        history: Earlier user/assistant messages of the conversation.
    """
    new_request_id()
    result = AgentResult()
    max_steps = max_steps or settings.AGENT_MAX_STEPS
    tools_schema = get_openai_tools_schema()

    messages: List[Dict[str, Any]] = [{"role": "system", "content": SYSTEM_PROMPT}]
    messages.extend(history or [])
    messages.append({"role": "user", "content": user_message})

    for step_num in range(max_steps):
        logger.info(f"Agent step {step_num + 1}/{max_steps}")

        try:
            response = get_chat_completion(messages, tools=tools_schema)
        except Exception as e:
            result.stopped_reason = f"error: {e}"
            break

        assistant_msg = response.choices[0].message

        # If no tool calls, we have the final answer
        if not assistant_msg.tool_calls:
            final_text = assistant_msg.content or ""
            result.steps.append(AgentStep(role="assistant", content=final_text))
            result.final_answer = final_text
            result.stopped_reason = "complete"
            result.total_steps = step_num + 1
            return result

        tc_summaries = [
            {"id": tc.id, "name": tc.function.name, "arguments": tc.function.arguments}
            for tc in assistant_msg.tool_calls
        ]
        result.steps.append(AgentStep(role="assistant", content=assistant_msg.content, tool_calls=tc_summaries))
        messages.append({
            "role": "assistant",
            "content": assistant_msg.content,
            "tool_calls": [
                {"id": tc["id"], "type": "function", "function": {"name": tc["name"], "arguments": tc["arguments"]}}
                for tc in tc_summaries
            ],
        })

        for tc in tc_summaries:
            t0 = time.monotonic()
            tool_result, kwargs, success = execute_tool(tc["name"], tc["arguments"])
            duration_ms = int((time.monotonic() - t0) * 1000)
            logger.info(f"Tool {tc['name']} {'ok' if success else 'failed'} in {duration_ms}ms")

            result.steps.append(AgentStep(
                role="tool",
                tool_name=tc["name"],
                tool_args=kwargs,
                tool_result=tool_result,
                duration_ms=duration_ms,
            ))
            messages.append({
                "role": "tool",
                "tool_call_id": tc["id"],
                "content": json.dumps(tool_result, default=str),
            })

    else:
        # Exhausted max_steps
        result.stopped_reason = "max_steps"
        result.final_answer = "(Assistant reached the maximum number of steps without a final answer.)"

    result.total_steps = len([s for s in result.steps if s.role == "assistant"])
    return result
