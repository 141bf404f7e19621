#!/usr/bin/env python3
"""
6502 Addressing Mode Tables

Maps the addressing-mode names used by the Obelisk 6502 reference onto the
fragments of a generated instruction-decode line. This centralizes the three
lookup tables so the extractor and its checks share one definition:

- addressing mode -> operand access call expression
- addressing mode -> operand type tag
- instruction byte length -> operand encoding tag

Usage:
    from addressing_modes import lookup_operand_access, lookup_operand_type

    lookup_operand_access("Absolute,X")   # "self.addr_absolute_x(memory)"
    lookup_operand_type("Absolute,X")     # "OperandType::AbsoluteX"
    lookup_operand_encoding("3")          # "OPERAND_DOUBLE_TYPE"
"""

from typing import Dict, List, Optional


# Text emitted in place of a fragment whose key is not in a table
PLACEHOLDER = "undefined"


class UnknownMappingError(KeyError):
    """Raised by a strict lookup when a key is missing from its table."""

    def __init__(self, table: str, key: str):
        super().__init__(key)
        self.table = table
        self.key = key

    def __str__(self) -> str:
        return f"No {self.table} mapping for {self.key!r}"


# ============================================================================
# Lookup Tables
# ============================================================================

# Addressing mode -> operand access expression
# Zero-page and indirect modes read one operand byte, absolute modes read two,
# implied and accumulator modes read none.
OPERAND_ACCESS: Dict[str, str] = {
    "Immediate": "self.addr_immediate(memory)",
    "Zero Page": "self.addr_zero_page(memory)",
    "Zero Page,X": "self.addr_zero_page_x(memory)",
    "Zero Page,Y": "self.addr_zero_page_y(memory)",
    "Absolute": "self.addr_absolute(memory)",
    "Absolute,X": "self.addr_absolute_x(memory)",
    "Absolute,Y": "self.addr_absolute_y(memory)",
    "(Indirect,X)": "self.addr_indirect_x(memory)",
    "(Indirect),Y": "self.addr_indirect_y(memory)",
    "Indirect": "self.addr_indirect(memory)",
    "Implied": "self.addr_implied()",
    "Accumulator": "self.addr_accumulator()",
    "Relative": "self.addr_relative(memory)",
}

# Addressing mode -> OperandType variant in the decode table
# ZeroPageY, Indirect, Accumulator and Relative extend the emulator's enum.
OPERAND_TYPES: Dict[str, str] = {
    "Immediate": "OperandType::Immediate",
    "Zero Page": "OperandType::ZeroPage",
    "Zero Page,X": "OperandType::ZeroPageX",
    "Zero Page,Y": "OperandType::ZeroPageY",
    "Absolute": "OperandType::Absolute",
    "Absolute,X": "OperandType::AbsoluteX",
    "Absolute,Y": "OperandType::AbsoluteY",
    "(Indirect,X)": "OperandType::IndirectX",
    "(Indirect),Y": "OperandType::IndirectY",
    "Indirect": "OperandType::Indirect",
    "Implied": "OperandType::NoOperands",
    "Accumulator": "OperandType::Accumulator",
    "Relative": "OperandType::Relative",
}

# Instruction length in bytes (opcode included) -> operand encoding tag
OPERAND_ENCODINGS: Dict[str, str] = {
    "1": "NO_OPERAND_TYPE",
    "2": "OPERAND_SINGLE_TYPE",
    "3": "OPERAND_DOUBLE_TYPE",
}

# Every addressing mode a documented 6502 opcode uses
KNOWN_ADDRESSING_MODES = [
    "Immediate",
    "Zero Page",
    "Zero Page,X",
    "Zero Page,Y",
    "Absolute",
    "Absolute,X",
    "Absolute,Y",
    "(Indirect,X)",
    "(Indirect),Y",
    "Indirect",
    "Implied",
    "Accumulator",
    "Relative",
]


# ============================================================================
# Lookups
# ============================================================================

def _lookup(table: Dict[str, str], table_name: str, key: str, strict: bool) -> str:
    if key in table:
        return table[key]
    if strict:
        raise UnknownMappingError(table_name, key)
    return PLACEHOLDER


def lookup_operand_access(addressing_mode: str, strict: bool = False) -> str:
    """
    Get the operand access expression for an addressing mode.

    Returns PLACEHOLDER for an unknown mode, or raises UnknownMappingError
    when strict is set.
    """
    return _lookup(OPERAND_ACCESS, "operand access", addressing_mode, strict)


def lookup_operand_type(addressing_mode: str, strict: bool = False) -> str:
    """Get the OperandType tag for an addressing mode."""
    return _lookup(OPERAND_TYPES, "operand type", addressing_mode, strict)


def lookup_operand_encoding(byte_length: str, strict: bool = False) -> str:
    """Get the operand encoding tag for an instruction length ("1".."3")."""
    return _lookup(OPERAND_ENCODINGS, "operand encoding", byte_length, strict)


# ============================================================================
# Utility Functions
# ============================================================================

def is_known_addressing_mode(addressing_mode: str) -> bool:
    """Check if both mode tables have an entry for the addressing mode."""
    return addressing_mode in OPERAND_ACCESS and addressing_mode in OPERAND_TYPES


def find_unmapped_modes(addressing_modes: Optional[List[str]] = None) -> List[str]:
    """
    List the addressing modes missing from either mode table.

    Defaults to checking KNOWN_ADDRESSING_MODES. Each missing mode is listed
    once, in first-seen order.
    """
    if addressing_modes is None:
        addressing_modes = KNOWN_ADDRESSING_MODES

    missing = []
    for mode in addressing_modes:
        if not is_known_addressing_mode(mode) and mode not in missing:
            missing.append(mode)
    return missing


# ============================================================================
# Command-Line Interface (for testing)
# ============================================================================

if __name__ == "__main__":
    print("=" * 70)
    print("6502 Addressing Mode Tables - Coverage Check")
    print("=" * 70)

    for mode in KNOWN_ADDRESSING_MODES:
        access = lookup_operand_access(mode)
        operand_type = lookup_operand_type(mode)
        status = "✓" if is_known_addressing_mode(mode) else "✗"
        print(f"  {status} {mode:14s} {access:32s} {operand_type}")

    print()
    for length, tag in sorted(OPERAND_ENCODINGS.items()):
        print(f"  {length} byte(s): {tag}")

    missing = find_unmapped_modes()
    print("\n" + "=" * 70)
    if missing:
        print(f"✗ Unmapped addressing modes: {', '.join(missing)}")
    else:
        print(f"✓ All {len(KNOWN_ADDRESSING_MODES)} addressing modes mapped")
