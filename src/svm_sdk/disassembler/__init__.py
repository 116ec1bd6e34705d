"""
SVM Disassembler Module
=======================

Turns SVM machine code back into assembly syntax, for listings, execution
traces and source reconstruction.

Usage:
    from svm_sdk.disassembler import Disassembler

    disasm = Disassembler()
    instructions = disasm.disassemble(code)
    print(disasm.to_source(instructions))
"""

from svm_sdk.disassembler.decoder import Disassembler, DisassembledInstruction

__all__ = [
    "Disassembler",
    "DisassembledInstruction",
]
