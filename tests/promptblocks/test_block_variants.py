"""
Property-based tests for variant-specific block behavior.

Covers history range selection and projection, toggle gating, block
validation, variable discovery and render purity.
"""

import random
from datetime import datetime

import allure
import pytest
from hypothesis import assume, given, settings, strategies as st

from promptblocks import (
    BlockId,
    ConfigurationError,
    HistoryBlock,
    HistoryEntry,
    HistoryRole,
    MessageRole,
    PlainBlock,
    RenderContext,
    RenderFailure,
    ToggleBlock,
    ToggleState,
    fixed_clock,
)


def make_history(*contents: str) -> list[HistoryEntry]:
    return [
        HistoryEntry(name=f"speaker{i}", role=MessageRole.USER, content=content)
        for i, content in enumerate(contents)
    ]


# Strategies for generating test data

@st.composite
def history_strategy(draw, max_size=8):
    """Generate history entries with distinct, non-empty contents."""
    size = draw(st.integers(min_value=0, max_value=max_size))
    return make_history(*(f"turn-{i}" for i in range(size)))


@st.composite
def history_range_strategy(draw):
    """Generate valid (start, end) pairs for a history block."""
    start = draw(st.one_of(st.none(), st.integers(min_value=0, max_value=10)))
    if start is None:
        return None, None
    end = draw(st.one_of(st.none(), st.integers(min_value=start + 1, max_value=12)))
    return start, end


@allure.feature("History Block")
@allure.story("Message projection")
def test_history_message_renders_each_turn():
    block = HistoryBlock(
        name="history",
        role=MessageRole.ASSISTANT,
        template="{{ turn.char_name }}: {{ turn.content }}",
    )
    context = RenderContext(history=make_history("hello", "hi there", "how are you?"))

    messages = block.render_messages(context).value

    assert [m.content for m in messages] == [
        "speaker0: hello",
        "speaker1: hi there",
        "speaker2: how are you?",
    ]
    assert all(m.role is MessageRole.ASSISTANT for m in messages)
    assert block.render_prompt(context).value == "speaker0: hello\nspeaker1: hi there\nspeaker2: how are you?"


@allure.feature("History Block")
@allure.story("Merge projection")
def test_history_merge_renders_once():
    block = HistoryBlock(
        name="history",
        role=MessageRole.USER,
        template="{% for turn in history %}[{{ turn.content }}]{% endfor %}",
        history_role=HistoryRole.MERGE,
    )
    context = RenderContext(history=make_history("a", "b", "c"))

    messages = block.render_messages(context).value

    assert [m.content for m in messages] == ["[a][b][c]"]


@pytest.mark.parametrize("history_role", list(HistoryRole))
def test_empty_history_renders_nothing(history_role):
    block = HistoryBlock(name="history", role=MessageRole.USER, template="static", history_role=history_role)
    context = RenderContext()

    assert block.render_messages(context).value == []
    assert block.render_prompt(context).value == ""


@pytest.mark.parametrize(
    "start, end, count_from_end, expected",
    [
        (None, None, False, ["0", "1", "2", "3", "4"]),
        (1, 3, False, ["1", "2"]),
        (3, None, False, ["3", "4"]),
        (0, 2, True, ["3", "4"]),
        (1, 3, True, ["2", "3"]),
        (2, None, True, ["0", "1", "2"]),
        (7, 9, False, []),
        (None, 0, False, []),
        (0, 0, True, []),
        (3, 0, False, []),
    ],
)
def test_history_range_selection(start, end, count_from_end, expected):
    block = HistoryBlock(
        name="history",
        role=MessageRole.USER,
        template="{{ turn.content }}",
        start=start,
        end=end,
        count_from_end=count_from_end,
    )
    context = RenderContext(history=make_history("0", "1", "2", "3", "4"))

    assert [m.content for m in block.render_messages(context).value] == expected


def test_history_template_sees_selected_turns_only():
    block = HistoryBlock(
        name="history",
        role=MessageRole.USER,
        template="{{ history | length }}",
        history_role=HistoryRole.MERGE,
        start=0,
        end=2,
        count_from_end=True,
    )
    context = RenderContext(history=make_history("a", "b", "c", "d"))

    assert block.render_prompt(context).value == "2"


# **Feature: prompt-blocks, Property 7: History selection order**
@allure.feature("History Block")
@allure.story("Selection order")
@allure.severity(allure.severity_level.CRITICAL)
@settings(max_examples=100)
@given(history=history_strategy(), bounds=history_range_strategy(), count_from_end=st.booleans())
def test_history_selection_keeps_order(history, bounds, count_from_end):
    """
    Property 7: History selection order

    The selected turns are a contiguous run of the history in original
    order, and the range picks the same number of turns from either end.
    """
    start, end = bounds
    block = HistoryBlock(
        name="history",
        role=MessageRole.USER,
        template="{{ turn.content }}",
        start=start,
        end=end,
        count_from_end=count_from_end,
    )
    context = RenderContext(history=history)

    rendered = [m.content for m in block.render_messages(context).value]
    contents = [entry.content for entry in history]
    expected_size = len(contents[start:end])

    assert len(rendered) == expected_size
    if rendered:
        first = contents.index(rendered[0])
        assert contents[first:first + len(rendered)] == rendered
        if count_from_end and start == 0:
            assert rendered[-1] == contents[-1]


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"end": 2}, "Start is required if end is provided"),
        ({"start": 2, "end": 2}, "Start must be less than end"),
        ({"start": 3, "end": 1}, "Start must be less than end"),
        ({"start": -1}, "non-negative"),
        ({"start": 0, "end": -1}, "non-negative"),
        ({"start": True}, "non-negative"),
        ({"start": "1"}, "non-negative"),
        ({"history_role": "message"}, "history role"),
    ],
)
def test_history_block_validation(kwargs, message):
    with pytest.raises(ConfigurationError, match=message):
        HistoryBlock(name="history", role=MessageRole.USER, template="", **kwargs)


def test_block_role_must_be_message_role():
    with pytest.raises(ConfigurationError) as exc_info:
        PlainBlock(name="plain", role="system", template="")
    assert exc_info.value.field == "role"


def test_block_template_must_be_string():
    with pytest.raises(ConfigurationError):
        PlainBlock(name="plain", role=MessageRole.SYSTEM, template=None)


def test_toggle_block_validation():
    with pytest.raises(ConfigurationError):
        ToggleBlock(name="toggle", role=MessageRole.SYSTEM, template="", toggle_type="single")
    with pytest.raises(ConfigurationError):
        ToggleBlock(name="toggle", role=MessageRole.SYSTEM, template="", id="abc")


@allure.feature("Toggle Block")
@allure.story("Toggle value")
def test_toggle_value_is_exposed():
    block_id = BlockId.generate()
    block = ToggleBlock(name="mood", role=MessageRole.SYSTEM, template="Mood: {{ toggle_value }}", id=block_id)
    context = RenderContext(toggle=ToggleState(enabled={block_id: True}, values={block_id: "cheerful"}))

    assert block.render_prompt(context).value == "Mood: cheerful"


def test_toggle_ids_are_unique_and_stable():
    first = ToggleBlock(name="a", role=MessageRole.SYSTEM, template="")
    second = ToggleBlock(name="a", role=MessageRole.SYSTEM, template="")

    assert first.id != second.id
    assert first.to_dict()["id"] == first.to_dict()["id"]


# **Feature: prompt-blocks, Property 8: Toggle gating**
@allure.feature("Toggle Block")
@allure.story("Toggle gating")
@allure.severity(allure.severity_level.CRITICAL)
@settings(max_examples=100)
@given(
    state=st.sampled_from(["on", "off", "absent"]),
    role=st.sampled_from(list(MessageRole)),
    text=st.text(alphabet="abcdef ", min_size=1, max_size=20),
)
def test_toggle_gating(state: str, role: MessageRole, text: str):
    """
    Property 8: Toggle gating

    A toggle block renders exactly like a plain block with the same
    template when switched on, and renders nothing when off or absent.
    """
    block_id = BlockId.generate()
    enabled = {"on": {block_id: True}, "off": {block_id: False}, "absent": {}}[state]
    context = RenderContext(variables={"text": text}, toggle=ToggleState(enabled=enabled))

    toggle = ToggleBlock(name="toggle", role=role, template="{{ text }}", id=block_id)
    plain = PlainBlock(name="plain", role=role, template="{{ text }}")

    if state == "on":
        assert toggle.render_messages(context) == plain.render_messages(context)
        assert toggle.render_prompt(context) == plain.render_prompt(context)
    else:
        assert toggle.render_messages(context).value == []
        assert toggle.render_prompt(context).value == ""


def test_disabled_toggle_skips_broken_template():
    block = ToggleBlock(name="toggle", role=MessageRole.SYSTEM, template="{{ x | no_such_filter }}")

    assert block.render_prompt(RenderContext()).value == ""


def test_empty_content_produces_no_message():
    block = PlainBlock(name="plain", role=MessageRole.SYSTEM, template="{{ missing }}")
    context = RenderContext()

    assert block.render_messages(context).value == []
    assert block.render_prompt(context).value == ""


def test_normalized_to_empty_produces_no_message():
    block = PlainBlock(
        name="plain",
        role=MessageRole.SYSTEM,
        template="  \n\n  ",
        is_delete_unnecessary_characters=True,
    )

    assert block.render_messages(RenderContext()).value == []


def test_failed_result_value_raises():
    block = PlainBlock(name="broken", role=MessageRole.SYSTEM, template="{{ oops ")
    result = block.render_prompt(RenderContext())

    assert result.is_failure
    assert "broken" in result.error
    with pytest.raises(RenderFailure):
        result.value


@allure.feature("Block Rendering")
@allure.story("Variable discovery")
@pytest.mark.parametrize(
    "block, expected",
    [
        (PlainBlock(name="p", role=MessageRole.SYSTEM, template="{{ char }} is {{ description }}."), ["char", "description"]),
        (PlainBlock(name="p", role=MessageRole.SYSTEM, template="It's {{ now }}"), []),
        (PlainBlock(name="p", role=MessageRole.SYSTEM, template="{{ a.b.c }}{{ a }}{{ b | roll }}"), ["a", "b"]),
        (HistoryBlock(name="h", role=MessageRole.SYSTEM, template="{{ turn.content }} {{ user }}"), ["user"]),
        (ToggleBlock(name="t", role=MessageRole.SYSTEM, template="{{ toggle_value }} {{ char }}"), ["char"]),
    ],
)
def test_get_variables(block, expected):
    assert block.get_variables() == expected


# **Feature: prompt-blocks, Property 9: Render purity**
@allure.feature("Block Rendering")
@allure.story("Render purity")
@allure.severity(allure.severity_level.CRITICAL)
@settings(max_examples=50)
@given(
    history=history_strategy(max_size=4),
    history_role=st.sampled_from(list(HistoryRole)),
    seed=st.integers(min_value=0, max_value=1000),
)
def test_render_purity(history, history_role, seed):
    """
    Property 9: Render purity

    Rendering leaves the block and context unchanged, and rendering twice
    with the same seeded RNG and fixed clock gives identical output.
    """
    assume(history)
    block_id = BlockId.generate()
    blocks = [
        PlainBlock(name="plain", role=MessageRole.SYSTEM, template="{{ now }} {{ ['x', 'y'] | random }}"),
        HistoryBlock(
            name="history",
            role=MessageRole.USER,
            template="{{ turn.content }}{{ '1d6' | roll }}",
            history_role=history_role,
        ),
        ToggleBlock(name="toggle", role=MessageRole.ASSISTANT, template="{{ var }}", id=block_id),
        PlainBlock(name="mutate", role=MessageRole.SYSTEM, template="{{ items.append('x') }}{{ items | length }}"),
    ]
    clock = fixed_clock(datetime(2024, 9, 12, 21, 14, 15))

    def context():
        return RenderContext(
            variables={"var": "value", "items": ["a", "b"]},
            history=history,
            toggle=ToggleState(enabled={block_id: True}),
            clock=clock,
            rng=random.Random(seed),
        )

    for block in blocks:
        snapshot = block.to_dict()
        first_context = context()
        first = block.render_messages(first_context)
        second = block.render_messages(context())

        assert first == second
        assert block.to_dict() == snapshot
        assert dict(first_context.variables) == {"var": "value", "items": ["a", "b"]}
        assert list(first_context.history) == history


@allure.feature("Block Rendering")
@allure.story("Render purity")
def test_template_cannot_mutate_caller_data():
    items = ["a", "b"]
    preferences = {"tone": "calm"}
    context = RenderContext(variables={"items": items, "settings": preferences})
    block = PlainBlock(
        name="mutate",
        role=MessageRole.SYSTEM,
        template="{{ items.append('x') }}{{ settings.update(tone='angry') }}{{ items | length }}",
    )

    first = block.render_prompt(context)
    second = block.render_prompt(context)

    assert first.is_failure
    assert first == second
    assert items == ["a", "b"]
    assert preferences == {"tone": "calm"}
    reader = PlainBlock(name="read", role=MessageRole.SYSTEM, template="{{ items | length }} {{ settings.tone }}")
    assert reader.render_prompt(context).value == "2 calm"
