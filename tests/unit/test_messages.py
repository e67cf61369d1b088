from agent_relay.schemas.messages import (
    END_USER_NAME,
    INITIAL,
    MANAGER_NAME,
    TYPE_NEW,
    Context,
    ModelMessage,
    ToolCall,
    forced_tool_choice,
)
from agent_relay.memory.transcript import send_message, set_assignee


def test_seed_builds_single_request_message():
    context = Context.seed("write an article")

    assert context.state == INITIAL
    assert context.round == 0
    assert context.assignees == ()
    (message,) = context.messages
    assert message.sender == END_USER_NAME
    assert message.to == MANAGER_NAME
    assert message.type == TYPE_NEW
    assert message.model_message.role == "user"
    assert message.model_message.content == "write an article"


def test_model_message_dict_omits_unset_fields():
    plain = ModelMessage(role="user", content="hi").to_dict()
    assert plain == {"role": "user", "content": "hi"}

    call = ToolCall(id="c1", name="save", arguments='{"path": "a.md"}')
    with_calls = ModelMessage(role="assistant", content="", tool_calls=(call,)).to_dict()
    assert with_calls["tool_calls"] == [
        {"id": "c1", "type": "function", "function": {"name": "save", "arguments": '{"path": "a.md"}'}}
    ]

    tool = ModelMessage(role="tool", content="ok", tool_call_id="c1", name="save").to_dict()
    assert tool["tool_call_id"] == "c1"
    assert tool["name"] == "save"


def test_context_survives_a_trip_through_plain_data():
    call = ToolCall(id="c1", name="save", arguments="{}")
    context = Context.seed("hello", metadata={"session": "s1"})
    context = send_message(
        context, "writer", "writer", ModelMessage(role="assistant", content="", tool_calls=(call,))
    )
    context = set_assignee(context, "writer")

    data = context.to_dict()
    assert data["messages"][0]["from"] == END_USER_NAME
    assert data["assignees"][0]["name"] == "writer"

    assert Context.from_dict(data) == context


def test_forced_tool_choice_names_the_function():
    assert forced_tool_choice("handoff") == {"type": "function", "function": {"name": "handoff"}}
