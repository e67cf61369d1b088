from agent_relay.schemas.messages import ToolCall
from agent_relay.tools.base import FunctionTool, execute_tool_call, tool_definitions


def _boom(arguments):
    raise RuntimeError("disk full")


def test_tool_definition_uses_function_schema():
    tool = FunctionTool(
        "save_to_file",
        lambda args: "saved",
        description="Save content",
        parameters={"type": "object", "properties": {"path": {"type": "string"}}},
    )
    (definition,) = tool_definitions([tool])
    assert definition["type"] == "function"
    assert definition["function"]["name"] == "save_to_file"
    assert definition["function"]["parameters"]["properties"]["path"]["type"] == "string"


def test_execute_returns_strings_as_is_and_encodes_others():
    echo = FunctionTool("echo", lambda args: args["text"])
    stats = FunctionTool("stats", lambda args: {"count": len(args["items"])})

    assert execute_tool_call([echo], ToolCall(id="1", name="echo", arguments='{"text": "hi"}')) == "hi"
    assert execute_tool_call([stats], ToolCall(id="2", name="stats", arguments='{"items": [1, 2]}')) == '{"count": 2}'


def test_missing_tool_is_reported_as_text():
    result = execute_tool_call([], ToolCall(id="1", name="nope", arguments="{}"))
    assert result == "Tool not found: nope"


def test_failures_become_error_text():
    failing = FunctionTool("save", _boom)
    assert execute_tool_call([failing], ToolCall(id="1", name="save", arguments="{}")) == "Error: disk full"

    echo = FunctionTool("echo", lambda args: "ok")
    result = execute_tool_call([echo], ToolCall(id="2", name="echo", arguments="{not json"))
    assert result.startswith("Error:")
