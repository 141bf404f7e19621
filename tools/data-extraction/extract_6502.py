#!/usr/bin/env python3
"""
6502 Instruction Table Extractor

Extracts every instruction and its addressing-mode rows from the Obelisk 6502
reference page and prints one decode-table line per (instruction, addressing
mode) pair, ready to paste into the emulator's instruction table.

Page structure relied on:
    <h3>ADC - Add with Carry</h3>
    ... processor status table ...
    <table>
        <tr><th>Addressing Mode</th><th>Opcode</th><th>Bytes</th><th>Cycles</th></tr>
        <tr><td>Immediate</td><td>$69</td><td>2</td><td>2</td></tr>
        ...
    </table>

Source page:
https://www.nesdev.org/obelisk-6502-guide/reference.html

Usage:
    python3 extract_6502.py                          # Fetch page, print lines
    python3 extract_6502.py --input reference.html   # Use a saved copy
    python3 extract_6502.py --style placeholder      # ADDRESSING_METHOD stubs
    python3 extract_6502.py --output decode.rs --json insts.json --report report.txt

Requirements: pip install requests beautifulsoup4 lxml
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from bs4 import BeautifulSoup, Tag

from addressing_modes import (
    PLACEHOLDER,
    UnknownMappingError,
    lookup_operand_access,
    lookup_operand_encoding,
    lookup_operand_type,
)


# ============================================================================
# Configuration
# ============================================================================

REFERENCE_URL = "https://www.nesdev.org/obelisk-6502-guide/reference.html"
REQUEST_TIMEOUT = 60

# One <h3> per instruction, e.g. "ADC - Add with Carry"
NAME_HEADING_TAG = "h3"

# Table body 0 belongs to the page header. Each instruction then adds a
# processor status table (odd index) followed by its opcode table (even index).
FIRST_OPCODE_TABLE = 2
OPCODE_TABLE_STRIDE = 2

# Opcode table layout
HEADER_ROWS = 1
IDX_ADDR_METHOD = 0
IDX_OPCODE = 1
IDX_BYTES = 2
IDX_CYCLES = 3
OPCODE_TABLE_HEADER = "Addressing Mode"

# Output line styles
STYLE_RESOLVED = "resolved"
STYLE_PLACEHOLDER = "placeholder"
LINE_STYLES = [STYLE_RESOLVED, STYLE_PLACEHOLDER]

RESOLVED_LINE_FORMAT = "{opcode}=>Instruction::{name}(opcode, {access}, {encoding}, {operand_type})"
PLACEHOLDER_LINE_FORMAT = "{opcode}=>{{Instruction::{name}(opcode, ADDRESSING_METHOD, OPERAND_SINGLE_TYPE)}}"

# Table selection policies
POLICY_STRIDE = "stride"
POLICY_HEADING = "heading"
TABLE_POLICIES = [POLICY_STRIDE, POLICY_HEADING]


# ============================================================================
# Data Models
# ============================================================================

class RowFormatError(IndexError):
    """Raised when an opcode table row has fewer cells than the layout needs."""


class AddressingRow:
    """One addressing-mode row of an instruction's opcode table."""

    def __init__(self, addressing_mode: str, opcode: str, byte_length: str, cycles: str):
        self.addressing_mode = addressing_mode
        self.opcode = opcode
        self.byte_length = byte_length
        self.cycles = cycles

    def to_list(self) -> List[str]:
        return [self.addressing_mode, self.opcode, self.byte_length, self.cycles]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to output dictionary format."""
        return {
            "addressingMode": self.addressing_mode,
            "opcode": self.opcode,
            "bytes": self.byte_length,
            "cycles": self.cycles,
        }

    def __repr__(self) -> str:
        return f"AddressingRow({self.addressing_mode}, {self.opcode}, {self.byte_length}, {self.cycles})"


class Instruction:
    """A 6502 mnemonic with the addressing-mode rows listed for it."""

    def __init__(self, mnemonic: str, rows: Optional[List[AddressingRow]] = None):
        self.mnemonic = mnemonic
        self.rows: List[AddressingRow] = rows if rows is not None else []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mnemonic": self.mnemonic,
            "rows": [row.to_dict() for row in self.rows],
        }

    def __repr__(self) -> str:
        return f"Instruction({self.mnemonic}, {len(self.rows)} rows)"


class ExtractionStats:
    """Tracks extraction statistics."""

    def __init__(self):
        self.headings = 0
        self.table_bodies = 0
        self.opcode_tables = 0
        self.rows = 0
        self.lines = 0
        # "<table>: <key>" -> number of lines that hit it
        self.unknown_keys: Dict[str, int] = {}
        self.warnings: List[str] = []

    def warn(self, message: str):
        """Record a warning and show it immediately."""
        self.warnings.append(message)
        print(f"  ⚠ {message}")

    def record_unknown(self, table: str, key: str, mnemonic: str, opcode: str):
        """Record a lookup that fell back to the placeholder."""
        label = f"{table}: {key}"
        if label not in self.unknown_keys:
            self.unknown_keys[label] = 0
        self.unknown_keys[label] += 1
        self.warn(f"{opcode} {mnemonic}: no {table} mapping for {key!r}")


# ============================================================================
# Text Utilities
# ============================================================================

def cell_text(tag: Tag) -> str:
    """Visible text of an element with runs of whitespace collapsed."""
    return " ".join(tag.get_text().split())


def heading_mnemonic(heading: Tag) -> str:
    """
    Get the mnemonic from an instruction heading.

    Examples:
        "ADC - Add with Carry" → "ADC"
        "BRK - Force Interrupt" → "BRK"
    """
    return cell_text(heading).split(" ")[0]


# ============================================================================
# Instruction Name Collection
# ============================================================================

def collect_instruction_names(soup: BeautifulSoup) -> List[str]:
    """Collect one mnemonic per instruction heading, in document order."""
    return [heading_mnemonic(heading) for heading in soup.find_all(NAME_HEADING_TAG)]


# ============================================================================
# Opcode Table Collection
# ============================================================================

def find_table_bodies(soup: BeautifulSoup) -> List[Tag]:
    """
    List every table body in document order.

    Browsers wrap table rows in an implicit <tbody>, which the lxml parser
    does not add. A table without an explicit <tbody> child stands in for
    its own body so indices match what the page shows in a browser.
    """
    bodies = []
    for table in soup.find_all("table"):
        explicit = table.find_all("tbody", recursive=False)
        if explicit:
            bodies.extend(explicit)
        else:
            bodies.append(table)
    return bodies


def collect_opcode_tables(
    soup: BeautifulSoup,
    first: int = FIRST_OPCODE_TABLE,
    stride: int = OPCODE_TABLE_STRIDE,
) -> List[Tag]:
    """Select the opcode tables by position: bodies first, first+stride, ..."""
    if first < 0:
        raise ValueError(f"First opcode table index must be 0 or more, got {first}")
    if stride < 1:
        raise ValueError(f"Opcode table stride must be 1 or more, got {stride}")
    return find_table_bodies(soup)[first::stride]


def is_opcode_table(table: Tag) -> bool:
    """Check if a table's header row starts with the "Addressing Mode" column."""
    header_row = table.find("tr")
    if not header_row:
        return False
    cells = header_row.find_all(["th", "td"])
    return bool(cells) and cell_text(cells[0]).startswith(OPCODE_TABLE_HEADER)


def find_opcode_table_after(heading: Tag) -> Optional[Tag]:
    """
    Find the opcode table belonging to an instruction heading.

    Looks at the tables following the heading, up to the next heading, and
    returns the first one whose header row reads "Addressing Mode".
    """
    for element in heading.next_elements:
        if not isinstance(element, Tag) or element.name not in (NAME_HEADING_TAG, "table"):
            continue
        if element.name == NAME_HEADING_TAG:
            return None
        if is_opcode_table(element):
            return element
    return None


# ============================================================================
# Row Parsing
# ============================================================================

def parse_addressing_row(row: Tag) -> AddressingRow:
    """
    Parse one opcode table row.

    Example:
        <td>Immediate</td><td>$29</td><td>2</td><td>2</td>
        → AddressingRow(Immediate, 0x29, 2, 2)
    """
    cells = row.find_all("td")
    needed = max(IDX_ADDR_METHOD, IDX_OPCODE, IDX_BYTES, IDX_CYCLES) + 1
    if len(cells) < needed:
        raise RowFormatError(
            f"Expected {needed} cells in opcode row, found {len(cells)}: {cell_text(row)!r}"
        )

    return AddressingRow(
        addressing_mode=cell_text(cells[IDX_ADDR_METHOD]),
        opcode=cell_text(cells[IDX_OPCODE]).replace("$", "0x", 1),
        byte_length=cell_text(cells[IDX_BYTES]),
        cycles=cell_text(cells[IDX_CYCLES]),
    )


def parse_opcode_table(body: Tag) -> List[AddressingRow]:
    """Parse every row of an opcode table except the header row."""
    rows = body.find_all("tr")
    return [parse_addressing_row(row) for row in rows[HEADER_ROWS:]]


# ============================================================================
# Instruction Extraction
# ============================================================================

def collect_instructions_by_stride(
    soup: BeautifulSoup,
    stats: ExtractionStats,
    first: int = FIRST_OPCODE_TABLE,
    stride: int = OPCODE_TABLE_STRIDE,
) -> List[Instruction]:
    """
    Pair the Nth heading with the Nth positionally selected opcode table.

    A table with no heading left to pair with is kept under the placeholder
    name. Count mismatches are reported since they usually mean the page
    layout changed.
    """
    names = collect_instruction_names(soup)
    tables = collect_opcode_tables(soup, first, stride)

    stats.headings = len(names)
    stats.table_bodies = len(find_table_bodies(soup))
    stats.opcode_tables = len(tables)
    print(f"Found {len(names)} instruction headings")
    print(f"Selected {len(tables)} of {stats.table_bodies} table bodies "
          f"(from index {first}, every {stride})")

    if len(names) != len(tables):
        stats.warn(f"{len(names)} headings but {len(tables)} opcode tables; "
                   f"pairing by position")

    instructions = []
    for idx, body in enumerate(tables):
        name = names[idx] if idx < len(names) else PLACEHOLDER
        instructions.append(Instruction(name, parse_opcode_table(body)))
    return instructions


def collect_instructions_by_heading(soup: BeautifulSoup, stats: ExtractionStats) -> List[Instruction]:
    """Pair each heading with the opcode table that follows it."""
    headings = soup.find_all(NAME_HEADING_TAG)
    stats.headings = len(headings)
    stats.table_bodies = len(find_table_bodies(soup))
    print(f"Found {len(headings)} instruction headings")

    instructions = []
    for heading in headings:
        mnemonic = heading_mnemonic(heading)
        table = find_opcode_table_after(heading)
        if table is None:
            stats.warn(f"No opcode table after heading {cell_text(heading)!r}")
            continue
        instructions.append(Instruction(mnemonic, parse_opcode_table(table)))

    stats.opcode_tables = len(instructions)
    print(f"Matched {len(instructions)} headings to opcode tables")
    return instructions


def extract_instructions_from_html(
    html_content: str,
    stats: ExtractionStats,
    policy: str = POLICY_STRIDE,
    first: int = FIRST_OPCODE_TABLE,
    stride: int = OPCODE_TABLE_STRIDE,
) -> List[Instruction]:
    """Extract all instructions and their addressing-mode rows from the page."""
    print("\n" + "=" * 70)
    print("EXTRACTING INSTRUCTIONS FROM REFERENCE PAGE")
    print("=" * 70)

    soup = BeautifulSoup(html_content, "lxml")

    if policy == POLICY_STRIDE:
        instructions = collect_instructions_by_stride(soup, stats, first, stride)
    elif policy == POLICY_HEADING:
        instructions = collect_instructions_by_heading(soup, stats)
    else:
        raise ValueError(f"Unknown table policy: {policy}")

    stats.rows = sum(len(instr.rows) for instr in instructions)
    print(f"✓ Extracted {len(instructions)} instructions ({stats.rows} addressing modes)")
    return instructions


# ============================================================================
# Code Line Emission
# ============================================================================

def format_instruction_line(
    mnemonic: str,
    row: AddressingRow,
    style: str = STYLE_RESOLVED,
    strict: bool = False,
    stats: Optional[ExtractionStats] = None,
) -> str:
    """
    Format one decode-table line.

    Examples (resolved, placeholder):
        0x7D=>Instruction::ADC(opcode, self.addr_absolute_x(memory), OPERAND_DOUBLE_TYPE, OperandType::AbsoluteX)
        0x7D=>{Instruction::ADC(opcode, ADDRESSING_METHOD, OPERAND_SINGLE_TYPE)}
    """
    if style == STYLE_PLACEHOLDER:
        return PLACEHOLDER_LINE_FORMAT.format(opcode=row.opcode, name=mnemonic)
    if style != STYLE_RESOLVED:
        raise ValueError(f"Unknown line style: {style}")

    access = lookup_operand_access(row.addressing_mode, strict)
    encoding = lookup_operand_encoding(row.byte_length, strict)
    operand_type = lookup_operand_type(row.addressing_mode, strict)

    if stats is not None:
        if access == PLACEHOLDER:
            stats.record_unknown("operand access", row.addressing_mode, mnemonic, row.opcode)
        if encoding == PLACEHOLDER:
            stats.record_unknown("operand encoding", row.byte_length, mnemonic, row.opcode)
        if operand_type == PLACEHOLDER:
            stats.record_unknown("operand type", row.addressing_mode, mnemonic, row.opcode)

    return RESOLVED_LINE_FORMAT.format(
        opcode=row.opcode,
        name=mnemonic,
        access=access,
        encoding=encoding,
        operand_type=operand_type,
    )


def emit_instruction_lines(
    instructions: List[Instruction],
    style: str = STYLE_RESOLVED,
    strict: bool = False,
    stats: Optional[ExtractionStats] = None,
) -> List[str]:
    """Format a line for every row of every instruction, in page order."""
    lines = []
    for instr in instructions:
        for row in instr.rows:
            lines.append(format_instruction_line(instr.mnemonic, row, style, strict, stats))

    if stats is not None:
        stats.lines = len(lines)
    return lines


def print_debug_dump(instructions: List[Instruction]) -> None:
    """Print the collected names and parsed rows."""
    print("\n  [DEBUG] Instruction names:")
    print(f"    {[instr.mnemonic for instr in instructions]}")
    print("  [DEBUG] Addressing rows:")
    for instr in instructions:
        print(f"    {instr.mnemonic}: {[row.to_list() for row in instr.rows]}")


# ============================================================================
# Report Generation
# ============================================================================

def generate_report(stats: ExtractionStats, instructions: List[Instruction]) -> str:
    """Generate extraction report."""
    lines = []
    lines.append("=" * 70)
    lines.append("6502 INSTRUCTION EXTRACTION REPORT")
    lines.append("=" * 70)
    lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("")

    lines.append("OVERALL STATISTICS")
    lines.append("-" * 70)
    lines.append(f"Instruction headings: {stats.headings}")
    lines.append(f"Table bodies in page: {stats.table_bodies}")
    lines.append(f"Opcode tables used: {stats.opcode_tables}")
    lines.append(f"Instructions extracted: {len(instructions)}")
    lines.append(f"Addressing modes extracted: {stats.rows}")
    lines.append(f"Lines generated: {stats.lines}")
    lines.append("")

    lines.append("\nINSTRUCTIONS")
    lines.append("-" * 70)
    for instr in instructions:
        opcodes = ", ".join(row.opcode for row in instr.rows)
        lines.append(f"{instr.mnemonic:5s} ({len(instr.rows)}): {opcodes}")
    lines.append("")

    lines.append("\nADDRESSING MODES")
    lines.append("-" * 70)
    mode_counts: Dict[str, int] = {}
    for instr in instructions:
        for row in instr.rows:
            mode_counts[row.addressing_mode] = mode_counts.get(row.addressing_mode, 0) + 1
    for mode in sorted(mode_counts):
        lines.append(f"{mode:14s}: {mode_counts[mode]}")
    lines.append("")

    lines.append("\nUNMAPPED KEYS")
    lines.append("-" * 70)
    if stats.unknown_keys:
        for label in sorted(stats.unknown_keys):
            lines.append(f"{label} ({stats.unknown_keys[label]} lines)")
    else:
        lines.append("None")
    lines.append("")

    lines.append("\nWARNINGS")
    lines.append("-" * 70)
    if stats.warnings:
        for warning in stats.warnings:
            lines.append(f"  {warning}")
    else:
        lines.append("None")

    lines.append("")
    lines.append("=" * 70)
    lines.append("END REPORT")
    lines.append("=" * 70)

    return "\n".join(lines)


# ============================================================================
# Main Pipeline
# ============================================================================

def fetch_html(url: str) -> str:
    """Fetch HTML content from URL."""
    print(f"Fetching {url}...")
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        print(f"✓ Downloaded {len(response.content):,} bytes")
        return response.text
    except requests.RequestException as e:
        print(f"✗ Failed to fetch: {e}")
        sys.exit(1)


def load_html(path: Path) -> str:
    """Read a saved copy of the reference page."""
    if not path.exists():
        print(f"✗ Input file not found: {path}")
        sys.exit(1)

    print(f"Reading {path}...")
    content = path.read_text(encoding="utf-8")
    print(f"✓ Read {len(content):,} characters")
    return content


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate 6502 decode-table lines from the Obelisk 6502 reference"
    )
    parser.add_argument("--url", default=REFERENCE_URL, help="Reference page URL")
    parser.add_argument("--input", type=Path, help="Read a saved copy of the page instead of fetching")
    parser.add_argument("--output", type=Path, help="Write generated lines to a file instead of the console")
    parser.add_argument("--json", type=Path, help="Write extracted instructions as JSON")
    parser.add_argument("--report", type=Path, help="Write an extraction report")
    parser.add_argument("--style", choices=LINE_STYLES, default=STYLE_RESOLVED,
                        help="Line style: resolved operand mapping or ADDRESSING_METHOD placeholder")
    parser.add_argument("--policy", choices=TABLE_POLICIES, default=POLICY_STRIDE,
                        help="How opcode tables are matched to headings")
    parser.add_argument("--first-table", type=int, default=FIRST_OPCODE_TABLE,
                        help="Index of the first opcode table body (stride policy)")
    parser.add_argument("--table-stride", type=int, default=OPCODE_TABLE_STRIDE,
                        help="Distance between opcode table bodies (stride policy)")
    parser.add_argument("--strict", action="store_true",
                        help="Fail on unmapped addressing modes or byte lengths")
    parser.add_argument("--debug", action="store_true", help="Print collected names and rows")
    return parser


def main(argv: Optional[List[str]] = None):
    """Main extraction pipeline."""
    args = build_arg_parser().parse_args(argv)

    print("=" * 70)
    print("6502 INSTRUCTION TABLE EXTRACTOR")
    print("=" * 70)
    print()

    stats = ExtractionStats()

    if args.input:
        html_content = load_html(args.input)
    else:
        html_content = fetch_html(args.url)

    try:
        instructions = extract_instructions_from_html(
            html_content, stats, args.policy, args.first_table, args.table_stride
        )
        if not instructions:
            print("✗ No instructions extracted. Exiting.")
            sys.exit(1)

        if args.debug:
            print_debug_dump(instructions)

        lines = emit_instruction_lines(instructions, args.style, args.strict, stats)
    except (RowFormatError, UnknownMappingError, ValueError) as e:
        print(f"✗ Extraction failed: {e}")
        sys.exit(1)

    print("\n" + "=" * 70)
    print("GENERATING OUTPUTS")
    print("=" * 70)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
        print(f"✓ Wrote {len(lines)} lines to {args.output}")
    else:
        print()
        for line in lines:
            print(line)
        print()

    if args.json:
        args.json.parent.mkdir(parents=True, exist_ok=True)
        json_data = [instr.to_dict() for instr in instructions]
        with open(args.json, "w", encoding="utf-8") as f:
            json.dump(json_data, f, indent=2, ensure_ascii=False)
        print(f"✓ Wrote {len(instructions)} instructions to {args.json}")

    if args.report:
        args.report.parent.mkdir(parents=True, exist_ok=True)
        with open(args.report, "w", encoding="utf-8") as f:
            f.write(generate_report(stats, instructions))
        print(f"✓ Wrote report to {args.report}")

    print("\n" + "=" * 70)
    print("EXTRACTION COMPLETE")
    print("=" * 70)
    print(f"Instructions: {len(instructions)}")
    print(f"Lines generated: {len(lines)}")
    if stats.warnings:
        print(f"Warnings: {len(stats.warnings)}")


if __name__ == "__main__":
    main()
