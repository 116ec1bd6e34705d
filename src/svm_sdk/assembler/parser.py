"""
SVM Assembly Line Parser
========================

Splits a normalized source line into an optional label, a mnemonic and its
operand list.

Syntax
------
    [LABEL] MNEMONIC [OPERAND[, OPERAND]]

The first word of a line is a label if it is not a mnemonic. Mnemonics are
case-sensitive and written in upper case. Operands are separated by commas;
whitespace around commas is ignored, but an operand may not itself contain
whitespace.

Examples:
    LOAD R1, 10
    LOOP SUB R1, 1
    JMPZ DONE
    VALUE DATA -5
    HALT
"""

from dataclasses import dataclass
from typing import Optional

from svm_sdk.assembler.source import SourceLine
from svm_sdk.errors import AssemblySyntaxError, UnknownInstructionError
from svm_sdk.isa import InstructionInfo, get_instruction_info, is_mnemonic


# =============================================================================
# Statement
# =============================================================================

@dataclass
class Statement:
    """
    One parsed instruction (or DATA word).

    Attributes:
        line: The source line this statement came from
        label: Label defined on this line, if any
        mnemonic: Instruction mnemonic
        operands: Operand texts in source order
        info: Instruction set entry for the mnemonic
        address: Byte address assigned by the first pass
    """
    line: SourceLine
    label: Optional[str]
    mnemonic: str
    operands: tuple[str, ...]
    info: InstructionInfo
    address: int = 0

    @property
    def size(self) -> int:
        return self.info.size

    def operand_location(self, index: int):
        """Source location of the operand at index, for diagnostics."""
        return self.line.location(self.line.column_of(self.operands[index]))


def format_usage(info: InstructionInfo) -> str:
    """Render the expected syntax of an instruction, e.g. 'ADD R1|R2, value'."""
    names = {
        "ANY_REGISTER": "register",
        "GENERAL_REGISTER": "R1|R2",
        "ADDRESS_REGISTER": "A1|A2",
        "VALUE": "value",
        "TARGET": "label",
    }
    operands = ", ".join(names[kind.name] for kind in info.operands)
    return f"{info.mnemonic} {operands}".rstrip()


# =============================================================================
# Parsing
# =============================================================================

def _unknown_instruction(word: str, line: SourceLine) -> UnknownInstructionError:
    hint = None
    if is_mnemonic(word.upper()):
        hint = f"mnemonics are upper case: did you mean '{word.upper()}'?"
    return UnknownInstructionError(
        word,
        location=line.location(line.column_of(word)),
        hint=hint,
        source_line=line.text,
    )


def split_operands(text: str, line: SourceLine) -> tuple[str, ...]:
    """
    Split an operand list on commas.

    Raises:
        AssemblySyntaxError: On an empty operand or an operand containing
            whitespace (usually a missing comma)
    """
    if not text:
        return ()

    operands = tuple(part.strip() for part in text.split(","))

    for operand in operands:
        if not operand:
            raise AssemblySyntaxError(
                "empty operand",
                location=line.location(line.column_of(text)),
                source_line=line.text,
            )
        if len(operand.split()) > 1:
            raise AssemblySyntaxError(
                f"malformed operand '{operand}'",
                location=line.location(line.column_of(operand)),
                hint="separate operands with a comma",
                source_line=line.text,
            )

    return operands


def parse_line(line: SourceLine) -> Optional[Statement]:
    """
    Parse one normalized source line.

    Args:
        line: The source line to parse

    Returns:
        The parsed Statement, or None for a blank line

    Raises:
        UnknownInstructionError: If no mnemonic can be found
        AssemblySyntaxError: If the operand list does not match the
            mnemonic's arity
    """
    if line.is_blank:
        return None

    words = line.code.split(None, 1)
    first = words[0]
    rest = words[1] if len(words) > 1 else ""
    label: Optional[str] = None

    if is_mnemonic(first):
        mnemonic = first
    else:
        # A line consisting of a single unknown word has no instruction
        if not rest:
            raise _unknown_instruction(first, line)

        parts = rest.split(None, 1)
        if not is_mnemonic(parts[0]):
            if is_mnemonic(first.upper()):
                raise _unknown_instruction(first, line)
            raise _unknown_instruction(parts[0], line)

        label = first
        mnemonic = parts[0]
        rest = parts[1] if len(parts) > 1 else ""

        if "," in label:
            raise AssemblySyntaxError(
                f"invalid label '{label}'",
                location=line.location(line.column_of(label)),
                hint="labels may not contain commas",
                source_line=line.text,
            )

    info = get_instruction_info(mnemonic)
    operands = split_operands(rest, line)

    if len(operands) != info.arity:
        plural = "operand" if info.arity == 1 else "operands"
        raise AssemblySyntaxError(
            f"{mnemonic} expects {info.arity} {plural}, got {len(operands)}",
            location=line.location(line.column_of(mnemonic)),
            hint=f"usage: {format_usage(info)}",
            source_line=line.text,
        )

    return Statement(line, label, mnemonic, operands, info)


def parse_lines(lines: list[SourceLine]) -> list[Statement]:
    """Parse every non-blank line."""
    statements = []
    for line in lines:
        stmt = parse_line(line)
        if stmt is not None:
            statements.append(stmt)
    return statements
