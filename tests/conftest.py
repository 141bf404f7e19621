"""
Shared fixtures: synthetic copies of the Obelisk 6502 reference page.

The page layout is one index table at the top, then for each instruction an
<h3> heading, a processor status table and the opcode table.
"""

import pytest
from bs4 import BeautifulSoup


SAMPLE_INSTRUCTIONS = [
    ("ADC", "Add with Carry", [
        ("Immediate", "$69", "2", "2"),
        ("Zero Page", "$65", "2", "3"),
        ("Absolute,X", "$7D", "3", "4 (+1 if page crossed)"),
    ]),
    ("AND", "Logical AND", [
        ("Immediate", "$29", "2", "2"),
        ("(Indirect),Y", "$31", "2", "5 (+1 if page crossed)"),
    ]),
    ("ASL", "Arithmetic Shift Left", [
        ("Accumulator", "$0A", "1", "2"),
        ("Zero Page,X", "$16", "2", "6"),
    ]),
    ("JMP", "Jump", [
        ("Absolute", "$4C", "3", "3"),
        ("Indirect", "$6C", "3", "5"),
    ]),
]


def status_table() -> str:
    return (
        "<table><tbody>"
        "<tr><td>C</td><td>Carry Flag</td><td>Set if overflow in bit 7</td></tr>"
        "<tr><td>Z</td><td>Zero Flag</td><td>Set if A = 0</td></tr>"
        "</tbody></table>"
    )


def opcode_table(rows) -> str:
    parts = [
        "<table><tbody>",
        "<tr><th>Addressing Mode</th><th>Opcode</th><th>Bytes</th><th>Cycles</th></tr>",
    ]
    for mode, opcode, length, cycles in rows:
        parts.append(
            f'<tr><td><a href="addressing.html">{mode}</a></td>'
            f"<td>{opcode}</td><td>{length}</td><td>{cycles}</td></tr>"
        )
    parts.append("</tbody></table>")
    return "".join(parts)


def build_reference_page(instructions=SAMPLE_INSTRUCTIONS, extra_tables: int = 0) -> str:
    """
    Build a page in the reference layout.

    extra_tables inserts that many unrelated tables between each status
    table and opcode table, breaking the positional layout.
    """
    parts = [
        "<html><head><title>6502 Reference</title></head><body>",
        "<h2>Instruction Reference</h2>",
        "<table><tbody><tr><td><a href='#ADC'>ADC</a></td><td><a href='#AND'>AND</a></td></tr></tbody></table>",
    ]
    for mnemonic, description, rows in instructions:
        parts.append(f"<h3>{mnemonic} - {description}</h3>")
        parts.append(f"<p>{description} operation.</p>")
        parts.append(status_table())
        for _ in range(extra_tables):
            parts.append("<table><tbody><tr><td>Note</td></tr></tbody></table>")
        parts.append(opcode_table(rows))
    parts.append("</body></html>")
    return "\n".join(parts)


@pytest.fixture
def reference_html() -> str:
    return build_reference_page()


@pytest.fixture
def reference_soup(reference_html) -> BeautifulSoup:
    return BeautifulSoup(reference_html, "lxml")


@pytest.fixture
def page_builder():
    """Factory for custom reference pages."""
    return build_reference_page
