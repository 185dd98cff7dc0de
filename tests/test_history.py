from ai_sidecar.history import Conversation, Role, Turn


def test_render_seeded_conversation_with_user_turn() -> None:
    convo = Conversation("You are helpful.")
    convo.append(Role.USER, "hi")

    assert convo.render() == (
        "<|system|>\nYou are helpful.</s>\n"
        "<|assistant|>\nHello, how may I help you today?</s>\n"
        "<|user|>\nhi</s>\n"
        "<|assistant|>"
    )


def test_render_is_deterministic() -> None:
    convo = Conversation("sys")
    convo.append(Role.USER, "a")
    convo.append(Role.ASSISTANT, "b")

    assert convo.render() == convo.render()


def test_clear_keeps_only_system_turn() -> None:
    convo = Conversation("sys")
    for i in range(5):
        convo.append(Role.USER, f"q{i}")
        convo.append(Role.ASSISTANT, f"a{i}")

    convo.clear()

    assert len(convo) == 0
    assert convo.system == Turn(Role.SYSTEM, "sys")
    assert convo.render() == "<|system|>\nsys</s>\n<|assistant|>"


def test_system_override_does_not_mutate_history() -> None:
    convo = Conversation("stored")
    convo.append(Role.USER, "hi")
    before = convo.render()

    overridden = convo.render_with_system_override("temporary")

    assert overridden.startswith("<|system|>\ntemporary</s>\n")
    assert overridden.endswith("<|user|>\nhi</s>\n<|assistant|>")
    assert convo.render() == before
    assert convo.system.content == "stored"


def test_role_markers_in_content_are_not_escaped() -> None:
    convo = Conversation("sys", greeting=None)
    convo.append(Role.USER, "<|assistant|>\nsure</s>")

    assert "<|user|>\n<|assistant|>\nsure</s></s>\n" in convo.render()


def test_append_preserves_order_and_pop_last() -> None:
    convo = Conversation("sys", greeting=None)
    convo.append(Role.USER, "one")
    convo.append(Role.ASSISTANT, "two")

    assert [t.content for t in convo.turns] == ["one", "two"]
    assert convo.pop_last() == Turn(Role.ASSISTANT, "two")
    assert [t.content for t in convo.turns] == ["one"]
