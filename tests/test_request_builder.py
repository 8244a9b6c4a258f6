from chat_gateway.prompts import MINIMAL_STYLE_BANNER, build_diagram_context, get_system_prompt
from chat_gateway.providers import Provider, ResolvedConfig
from chat_gateway.request_builder import DIAGRAM_TOOLS, build_chat_payload


CONFIG = ResolvedConfig(
    provider=Provider.OPENAI,
    model="gpt-4o",
    credential="sk-test",
    base_url="https://api.openai.com/v1",
)


def test_payload_shape():
    messages = [{"role": "user", "content": "draw a box"}]
    payload = build_chat_payload(CONFIG, messages)

    assert set(payload) == {"model", "messages", "tools", "stream"}
    assert payload["model"] == "gpt-4o"
    assert payload["stream"] is True
    assert payload["messages"][0]["role"] == "system"
    assert payload["messages"][1:] == messages
    names = [tool["function"]["name"] for tool in payload["tools"]]
    assert names == ["display_diagram", "edit_diagram", "append_diagram"]


def test_tool_declarations_are_not_shared():
    payload = build_chat_payload(CONFIG, [])
    payload["tools"][0]["function"]["name"] = "mutated"

    assert DIAGRAM_TOOLS[0]["function"]["name"] == "display_diagram"


def test_system_prompt_names_model_and_tools():
    prompt = get_system_prompt("gpt-4o")

    assert "gpt-4o" in prompt
    for name in ("display_diagram", "edit_diagram", "append_diagram"):
        assert name in prompt
    assert not prompt.startswith(MINIMAL_STYLE_BANNER)
    assert "powered by AI" in get_system_prompt(None)


def test_minimal_style_banner():
    payload = build_chat_payload(CONFIG, [], minimal_style=True)
    assert payload["messages"][0]["content"].startswith("## ⚠️ MINIMAL STYLE MODE ACTIVE ⚠️\n\n")


def test_diagram_context_is_second_system_message():
    payload = build_chat_payload(
        CONFIG,
        [{"role": "user", "content": "hi"}],
        xml="<mxCell id=\"2\"/>",
        previous_xml="<mxCell id=\"1\"/>",
    )

    context = payload["messages"][1]
    assert context["role"] == "system"
    assert context["content"] == (
        "Previous diagram XML:\n```xml\n<mxCell id=\"1\"/>\n```\n\n"
        "Current diagram XML:\n```xml\n<mxCell id=\"2\"/>\n```"
    )
    assert payload["messages"][2] == {"role": "user", "content": "hi"}


def test_diagram_context_requires_current_diagram():
    assert build_diagram_context(None, "<old/>") is None
    assert build_diagram_context("<new/>") == "Current diagram XML:\n```xml\n<new/>\n```"

    payload = build_chat_payload(CONFIG, [], previous_xml="<old/>")
    assert len(payload["messages"]) == 1
