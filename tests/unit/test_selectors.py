import json

import pytest

from agent_relay.agents.agent import Agent
from agent_relay.memory.transcript import get_assignee, get_messages, set_assignee
from agent_relay.schemas.errors import AgentNotFoundError, HandoffError
from agent_relay.schemas.messages import MANAGER_NAME, Context, ModelReply
from agent_relay.workflows.manager import AgentManager


def never(context, text):
    return False


def roster(*names, **agent_kwargs):
    manager = AgentManager(should_terminate=never)
    for name in names:
        manager.register(Agent(name, **agent_kwargs))
    return manager


def test_round_robin_cycles_in_registration_order():
    manager = roster("A", "B")
    selector = manager.assignee_selector
    context = Context.seed("hi")

    picked = []
    for _ in range(5):
        context = selector.handle(context)
        picked.append(get_assignee(context))

    assert picked == ["A", "B", "A", "B", "A"]


def test_round_robin_rejects_unregistered_assignee():
    manager = roster("A", "B")
    context = set_assignee(Context.seed("hi"), "ghost")
    with pytest.raises(AgentNotFoundError):
        manager.assignee_selector.handle(context)


def test_round_robin_without_agents_leaves_context_alone():
    manager = AgentManager(should_terminate=never)
    context = Context.seed("hi")
    assert manager.assignee_selector.handle(context) is context


def test_model_driven_selection_uses_reply_verbatim(scripted_model):
    model = scripted_model("Reviewer")
    manager = AgentManager(should_terminate=never, selector_prompt="Pick the next agent.", model_service=model)
    manager.register(Agent("Writer"))
    manager.register(Agent("Reviewer"))

    context = manager.assignee_selector.handle(Context.seed("write something"))

    assert get_assignee(context) == "Reviewer"
    sent = model.calls[0]["messages"]
    assert sent[0].role == "system"
    assert sent[0].content == "Pick the next agent."
    assert sent[1].content == "write something"
    record = get_messages(context, MANAGER_NAME)[-1]
    assert record.sender == MANAGER_NAME
    assert record.model_message.role == "assistant"
    assert record.model_message.content == "Reviewer"


def handoff_pair(model, **writer_kwargs):
    manager = AgentManager(should_terminate=never)
    writer = Agent("Writer", model, handoffs=["Reviewer"], **writer_kwargs)
    manager.register(writer)
    manager.register(Agent("Reviewer", model, handoffs=["Writer"]))
    return manager, writer


def test_handoff_selects_matching_agent_and_records_call(scripted_model, make_tool_reply):
    model = scripted_model(make_tool_reply("handoff", json.dumps({"nextAgent": "the reviewer"}), content="Done."))
    manager, writer = handoff_pair(model)
    context = set_assignee(Context.seed("hi"), "Writer")

    result = writer.select_assignee(context)

    assert get_assignee(result) == "Reviewer"
    call = model.calls[0]
    assert [t["function"]["name"] for t in call["tools"]] == ["handoff"]
    assert call["tool_choice"] == {"type": "function", "function": {"name": "handoff"}}
    assert "Reviewer" in call["messages"][0].content
    request, outcome = result.messages[-2:]
    assert (request.sender, request.to) == ("Writer", "Writer")
    assert request.model_message.tool_calls[0].name == "handoff"
    assert outcome.sender == "tool:handoff"
    assert outcome.model_message.role == "tool"
    assert outcome.model_message.content.endswith("Handing off to Reviewer")


def test_handoff_decision_can_override_model_choice(scripted_model, make_tool_reply):
    seen = []

    def decide(context, proposed):
        seen.append(proposed)
        return "Writer"

    model = scripted_model(make_tool_reply("handoff", json.dumps({"nextAgent": "Reviewer"})))
    manager, writer = handoff_pair(model, handle_handoff=decide)

    result = writer.select_assignee(set_assignee(Context.seed("hi"), "Writer"))

    assert seen == ["Reviewer"]
    assert get_assignee(result) == "Writer"


def test_handoff_without_tool_call_fails(scripted_model):
    manager, writer = handoff_pair(scripted_model(ModelReply(content="I will not")))
    with pytest.raises(HandoffError):
        writer.select_assignee(set_assignee(Context.seed("hi"), "Writer"))


def test_handoff_to_unknown_agent_fails(scripted_model, make_tool_reply):
    model = scripted_model(make_tool_reply("handoff", json.dumps({"nextAgent": "Editor"})))
    manager, writer = handoff_pair(model)
    with pytest.raises(HandoffError):
        writer.select_assignee(set_assignee(Context.seed("hi"), "Writer"))


def test_handoff_selector_is_inert_for_other_assignees(scripted_model):
    model = scripted_model("unused")
    manager, writer = handoff_pair(model)
    context = set_assignee(Context.seed("hi"), "Reviewer")

    assert writer.select_assignee(context) is context
    assert model.calls == []


def test_handoff_chain_rejects_unregistered_current_assignee(scripted_model):
    manager, writer = handoff_pair(scripted_model("unused"))
    context = set_assignee(Context.seed("hi"), "ghost")
    with pytest.raises(AgentNotFoundError):
        manager.select_assignee(context)


def test_handoff_chain_bootstraps_with_first_agent(scripted_model):
    model = scripted_model("unused")
    manager = AgentManager(should_terminate=never)
    manager.register(Agent("Plain", model))
    manager.register(Agent("Router", model, handoffs=["Plain"]))

    context = manager.select_assignee(Context.seed("hi"))

    assert get_assignee(context) == "Plain"
    assert model.calls == []
