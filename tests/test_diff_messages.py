from __future__ import annotations

import pytest
from telethon.extensions import html as telethon_html
from telethon.tl.types import MessageEntityBold, MessageEntityPre

from core.diff_messages import PRE_CLOSE, PRE_OPEN, count_diff, diff_to_messages, pack_messages
from core.models import DiffEntry, DiffKind, FieldDiff, MessageContext


def _created(address: str = "0xaaa", name: str = "Bridge") -> DiffEntry:
    return DiffEntry(kind=DiffKind.CREATED, name=name, address=address)


def _deleted(address: str = "0xbbb", name: str = "OldBridge") -> DiffEntry:
    return DiffEntry(kind=DiffKind.DELETED, name=name, address=address)


def _modified(address: str = "0xccc", fields: int = 1, value_size: int = 4) -> DiffEntry:
    return DiffEntry(
        kind=DiffKind.MODIFIED,
        name="Rollup",
        address=address,
        fields=tuple(
            FieldDiff(key=f"values.field{i}", before="a" * value_size, after="b" * value_size)
            for i in range(fields)
        ),
    )


def test_count_diff_sums_entries_and_fields() -> None:
    diff = [_created(), _modified(fields=3), _deleted()]
    assert count_diff(diff) == 5


def test_count_diff_modified_without_fields_counts_zero() -> None:
    assert count_diff([_modified(fields=0)]) == 0
    assert count_diff([]) == 0


def test_empty_diff_renders_no_messages() -> None:
    assert diff_to_messages("arbitrum", [], MessageContext(nonce=1)) == []


def test_header_contains_context() -> None:
    context = MessageContext(nonce=42, block_number=19000000, dependents=("nova", "orbit"), chain="ethereum")
    [message] = diff_to_messages("arbitrum", [_created()], context)

    lines = message.splitlines()
    assert lines[0] == "<b>arbitrum</b> | detected changes on chain: <b>ethereum</b>"
    assert "nonce: 000042" in lines
    assert "block number: 19000000" in lines
    assert "dependents: nova, orbit" in lines


def test_nonce_is_omitted_without_context_nonce() -> None:
    [message] = diff_to_messages("arbitrum", [_created()], MessageContext(block_number=1, chain="ethereum"))
    assert "nonce" not in message


def test_entries_render_by_kind() -> None:
    diff = [
        _created(address="0x1", name="Bridge"),
        _deleted(address="0x2", name="Gateway"),
        DiffEntry(
            kind=DiffKind.MODIFIED,
            name="Rollup",
            address="0x3",
            fields=(
                FieldDiff(key="values.owner", before="0xold", after="0xnew"),
                FieldDiff(key="values.added", after="1"),
                FieldDiff(key="values.removed", before="2"),
            ),
        ),
    ]
    [message] = diff_to_messages("arbitrum", diff)

    assert f"{PRE_OPEN}+ New contract: Bridge | 0x1{PRE_CLOSE}" in message
    assert f"{PRE_OPEN}- Deleted contract: Gateway | 0x2{PRE_CLOSE}" in message
    assert (
        f"{PRE_OPEN}Rollup | 0x3\n\nvalues.owner\n- 0xold\n+ 0xnew\n\n"
        f"values.added\n+ 1\n\nvalues.removed\n- 2{PRE_CLOSE}"
    ) in message


def test_output_is_deterministic() -> None:
    diff = [_created(), _modified(fields=2)]
    context = MessageContext(nonce=3, block_number=10, chain="ethereum")
    assert diff_to_messages("arbitrum", diff, context) == diff_to_messages("arbitrum", diff, context)


def test_long_diffs_are_split_within_limit() -> None:
    diff = [_modified(address=f"0x{i}", fields=4, value_size=40) for i in range(20)]
    messages = diff_to_messages("arbitrum", diff, MessageContext(nonce=0), max_length=500)

    assert len(messages) > 1
    assert all(len(message) <= 500 for message in messages)
    assert messages[0].startswith("<b>arbitrum</b>")
    # Every entry lands in exactly one message, in order.
    joined = "\n".join(messages)
    positions = [joined.index(f"Rollup | 0x{i}\n") for i in range(20)]
    assert positions == sorted(positions)


def test_oversized_entry_is_truncated_and_block_closed() -> None:
    messages = diff_to_messages("arbitrum", [_modified(fields=50, value_size=100)], max_length=300)

    assert all(len(message) <= 300 for message in messages)
    assert messages[-1].endswith(f"\n...{PRE_CLOSE}")


def test_truncation_keeps_html_entities_whole() -> None:
    entry = DiffEntry(
        kind=DiffKind.MODIFIED,
        name="Rollup",
        address="0xccc",
        fields=(FieldDiff(key="values.note", after="&" * 500),),
    )
    block = diff_to_messages("arbitrum", [entry], max_length=302)[-1]

    body = block[len(PRE_OPEN) : -len(PRE_CLOSE)]
    assert len(block) <= 302
    assert body.endswith(";\n...")


def test_names_and_values_are_html_escaped() -> None:
    entry = DiffEntry(
        kind=DiffKind.MODIFIED,
        name="Rollup",
        address="0x3",
        fields=(FieldDiff(key="values.note", after="<script>&</script>"),),
    )
    [message] = diff_to_messages("a<b>&c", [entry], MessageContext(chain="ethereum"))

    assert message.startswith("<b>a&lt;b&gt;&amp;c</b>")
    assert "+ &lt;script&gt;&amp;&lt;/script&gt;" in message


def test_telethon_parses_header_as_bold() -> None:
    [message] = diff_to_messages(
        "polygon_zkevm", [_created()], MessageContext(chain="ethereum", nonce=1)
    )

    text, entities = telethon_html.parse(message)

    assert text.splitlines()[0] == "polygon_zkevm | detected changes on chain: ethereum"
    assert any(isinstance(entity, MessageEntityBold) for entity in entities)
    assert any(isinstance(entity, MessageEntityPre) for entity in entities)
    assert "\\" not in text


def test_pack_messages_keeps_order_and_limit() -> None:
    assert pack_messages(["aaaa", "bbbb", "cccc"], max_length=9) == ["aaaa\nbbbb", "cccc"]
    assert pack_messages([], max_length=9) == []


def test_rejects_unusably_small_limit() -> None:
    with pytest.raises(ValueError):
        diff_to_messages("arbitrum", [_created()], max_length=10)
